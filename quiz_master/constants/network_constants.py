"""Network configuration constants for the quiz service."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 3000
DEFAULT_CORS_ORIGIN: str = "http://localhost:5173"
API_PREFIX: str = "/api/v1"
USER_ID_HEADER: str = "X-User-Id"
