"""Application entry point for the Quiz Master API."""

from __future__ import annotations

from quiz_master.core.quiz_manager import QuizManager
from quiz_master.server.api_server import run_api_server
from quiz_master.utils.logging_config import configure_logging
from quiz_master.utils.settings import ServerSettings


def main() -> None:
    """Load settings, initialize logging and serve the API."""
    settings = ServerSettings()
    logger = configure_logging(settings.log_level)
    logger.info(
        "Starting Quiz Master on %s:%d (leveling: %s)",
        settings.host,
        settings.port,
        settings.leveling_policy.value,
    )

    quiz_manager = QuizManager(leveling_policy=settings.leveling_policy)
    run_api_server(quiz_manager, settings)


if __name__ == "__main__":
    main()
