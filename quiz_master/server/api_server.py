"""FastAPI server exposing quizzes, attempts and leaderboards."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from quiz_master.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_master.constants.network_constants import API_PREFIX, DEFAULT_CORS_ORIGIN, USER_ID_HEADER
from quiz_master.core.errors import ConflictError, NotFoundError, QuizValidationError
from quiz_master.core.models import User
from quiz_master.core.quiz_manager import QuizManager
from quiz_master.server.payloads import (
    AttemptPayload,
    CategoryPayload,
    QuizPayload,
    RegisterPayload,
    UpdateProfilePayload,
    serialize_attempt_result,
    serialize_category,
    serialize_category_listing,
    serialize_category_ranking,
    serialize_global_ranking,
    serialize_main_category,
    serialize_quiz,
    serialize_quiz_ranking,
    serialize_user,
)
from quiz_master.utils.settings import ServerSettings

logger = logging.getLogger(__name__)


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(QuizValidationError)
    def handle_validation(request: Request, exc: QuizValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ConflictError)
    def handle_conflict(request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})


def create_api_app(quiz_manager: QuizManager, cors_origin: str = DEFAULT_CORS_ORIGIN) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        description=APP_ABOUT_TEXT,
        version=APP_VERSION,
        license_info={"name": APP_LICENSE},
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    def current_user(
        user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> User:
        if not user_id:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return manager.get_user(user_id)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # --- Users ---

    @app.post(f"{API_PREFIX}/users", status_code=201)
    def register_user(
        payload: RegisterPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        user = manager.register_user(payload.username, payload.email)
        return {"user": serialize_user(user)}

    @app.get(f"{API_PREFIX}/users/me")
    def get_profile(user: User = Depends(current_user)) -> dict[str, object]:
        return {"user": serialize_user(user)}

    @app.put(f"{API_PREFIX}/users/me")
    def update_profile(
        payload: UpdateProfilePayload,
        user: User = Depends(current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        updated = manager.update_user(user.id, payload.username, payload.email)
        return {"user": serialize_user(updated)}

    @app.get(f"{API_PREFIX}/users/me/attempts/count")
    def count_attempts(
        user: User = Depends(current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, int]:
        return {"count": manager.count_user_attempts(user.id)}

    @app.get(f"{API_PREFIX}/users/me/main-category")
    def get_main_category(
        user: User = Depends(current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return {"mainCategory": serialize_main_category(manager.get_main_category(user.id))}

    @app.get(f"{API_PREFIX}/ranking")
    def get_global_ranking(manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        return serialize_global_ranking(manager.get_global_ranking())

    # --- Categories ---

    @app.get(f"{API_PREFIX}/categories")
    def list_categories(manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        return [serialize_category_listing(listing) for listing in manager.list_categories()]

    @app.post(f"{API_PREFIX}/categories", status_code=201)
    def create_category(
        payload: CategoryPayload,
        user: User = Depends(current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        category = manager.create_category(
            payload.name,
            description=payload.description,
            color=payload.color,
            icon=payload.icon,
        )
        logger.info("User %s created category %s", user.username, category.id)
        return serialize_category(category)

    @app.get(f"{API_PREFIX}/categories/{{category_id}}/ranking")
    def get_category_ranking(
        category_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return serialize_category_ranking(manager.get_category_ranking(category_id))

    # --- Quizzes ---

    @app.get(f"{API_PREFIX}/quizzes/{{quiz_id}}")
    def get_quiz(
        quiz_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return serialize_quiz(manager.get_quiz(quiz_id))

    @app.post(f"{API_PREFIX}/quizzes", status_code=201)
    def create_quiz(
        payload: QuizPayload,
        user: User = Depends(current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = manager.create_quiz(
            creator_id=user.id,
            category_id=payload.category_id,
            title=payload.title,
            difficulty=payload.difficulty,
            questions=[question.to_draft() for question in payload.questions],
            description=payload.description,
        )
        return serialize_quiz(quiz, include_answers=True)

    @app.post(f"{API_PREFIX}/quizzes/{{quiz_id}}/attempt", status_code=201)
    def submit_attempt(
        quiz_id: str,
        payload: AttemptPayload,
        user: User = Depends(current_user),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        result = manager.submit_attempt(user.id, quiz_id, payload.to_answers())
        return serialize_attempt_result(result)

    @app.get(f"{API_PREFIX}/quizzes/{{quiz_id}}/ranking")
    def get_quiz_ranking(
        quiz_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return serialize_quiz_ranking(manager.get_quiz_ranking(quiz_id))

    return app


def run_api_server(quiz_manager: QuizManager, settings: ServerSettings) -> None:
    """Serve the API with uvicorn until the process is stopped."""
    app = create_api_app(quiz_manager, cors_origin=settings.cors_origin)
    config = uvicorn.Config(
        app=app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    server.run()
