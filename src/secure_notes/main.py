import logging
import time
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Depends, Query, Path, Request, status
from fastapi.middleware.cors import CORSMiddleware

from secure_notes import messages
from secure_notes.auth import get_current_user
from secure_notes.config import Settings, load_settings
from secure_notes.database import build_engine, build_session_factory
from secure_notes.errors import register_exception_handlers
from secure_notes.models import Base
from secure_notes.schemas import (
    ApiResponse,
    DeletedNoteResponse,
    HealthResponse,
    Identity,
    LoginRequest,
    LoginResponse,
    NoteCreateRequest,
    NoteListResponse,
    NoteResponse,
    UserCreateRequest,
    UserResponse,
)
from secure_notes.security import PasswordHasher, TokenCodec
from secure_notes.services import AuthService, NoteService, get_auth_service, get_note_service

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("secure_notes.access")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, token_codec: Optional[TokenCodec] = None) -> FastAPI:
    """
    Build the Notes API application.

    Args:
        settings: immutable configuration; loaded from the environment when omitted.
        token_codec: overrides the codec built from settings (tests inject a clock).
    """
    settings = settings or load_settings()

    engine = build_engine(settings.database_url)
    # Initialize database tables
    Base.metadata.create_all(bind=engine)

    app = FastAPI(
        title="Secure Notes API",
        description="Notes backend with JWT auth and owner-scoped storage of client-encrypted notes.",
        version="1.0.0",
        openapi_tags=[
            {"name": "Health", "description": "Service health and status."},
            {"name": "Auth", "description": "User registration and authentication."},
            {"name": "Notes", "description": "Create, list, search and delete notes."},
        ],
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_codec = token_codec or TokenCodec(
        settings.secret_key,
        ttl=settings.access_token_ttl,
        algorithm=settings.jwt_algorithm,
    )

    # CORS setup - allow frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        access_logger.info(
            "%s %s %s - %.1f ms", request.method, request.url.path, response.status_code, elapsed_ms
        )
        return response

    register_exception_handlers(app)
    logger.info(
        "Secure Notes API configured (env=%s, database=%s)",
        settings.env,
        engine.url.render_as_string(hide_password=True),
    )
    app.include_router(_build_router())
    return app


def _build_router():
    router = APIRouter()

    # PUBLIC_INTERFACE
    @router.get(
        "/health",
        response_model=ApiResponse[HealthResponse],
        tags=["Health"],
        summary="Health Check",
    )
    def health_check():
        """Report that the service is up."""
        return ApiResponse[HealthResponse](
            message=messages.HEALTHY,
            data=HealthResponse(timestamp=datetime.now(timezone.utc)),
        )

    # -------- Auth Routes --------

    # PUBLIC_INTERFACE
    @router.post(
        "/auth/register",
        response_model=ApiResponse[UserResponse],
        status_code=status.HTTP_201_CREATED,
        tags=["Auth"],
        summary="Register a new user",
    )
    def register_user(payload: UserCreateRequest, auth: AuthService = Depends(get_auth_service)):
        """
        Register a new user.

        Body:
            email: valid email address
            password: plaintext password, at least 6 characters

        Returns:
            The public profile, never the password or its hash.

        Raises:
            400 if the email is already registered.
        """
        identity = auth.register(payload.email, payload.password)
        return ApiResponse[UserResponse](
            message=messages.REGISTER_SUCCESS,
            data=UserResponse.model_validate(identity),
        )

    # PUBLIC_INTERFACE
    @router.post(
        "/auth/login",
        response_model=ApiResponse[LoginResponse],
        tags=["Auth"],
        summary="Login and obtain JWT access token",
    )
    def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
        """
        Exchange email and password for a bearer token.

        Raises:
            400 "Invalid email or password" for an unknown email or a wrong password alike.
        """
        result = auth.login(payload.email, payload.password)
        return ApiResponse[LoginResponse](
            message=messages.LOGIN_SUCCESS,
            data=LoginResponse(token=result.token, profile=UserResponse.model_validate(result.profile)),
        )

    # -------- Notes Routes --------

    # PUBLIC_INTERFACE
    @router.get(
        "/notes",
        response_model=ApiResponse[NoteListResponse],
        response_model_exclude_none=True,
        tags=["Notes"],
        summary="List notes with search or pagination",
    )
    def list_notes(
        search: Optional[str] = Query(None, description="Case-insensitive title search"),
        page: Optional[str] = Query(None, description="Page number starting at 1 (requires limit)"),
        limit: Optional[str] = Query(None, description="Items per page (requires page)"),
        current_user: Identity = Depends(get_current_user),
        notes: NoteService = Depends(get_note_service),
    ):
        """
        List notes belonging to the current user, newest first.

        Query params:
            search: title substring; takes priority over pagination
            page, limit: both required to paginate; bad values fall back to 1 and 10
        """
        return ApiResponse[NoteListResponse](
            message=messages.NOTES_FETCHED,
            data=notes.list_notes(current_user, search=search, page=page, limit=limit),
        )

    # PUBLIC_INTERFACE
    @router.post(
        "/notes",
        response_model=ApiResponse[NoteResponse],
        status_code=status.HTTP_201_CREATED,
        tags=["Notes"],
        summary="Create a new note",
    )
    def create_note(
        payload: NoteCreateRequest,
        current_user: Identity = Depends(get_current_user),
        notes: NoteService = Depends(get_note_service),
    ):
        """
        Create a new note for the authenticated user. Content is stored as sent.
        """
        note = notes.create_note(current_user, payload.title, payload.content)
        return ApiResponse[NoteResponse](
            message=messages.NOTE_CREATED,
            data=NoteResponse.model_validate(note),
        )

    # PUBLIC_INTERFACE
    @router.delete(
        "/notes/{note_id}",
        response_model=ApiResponse[DeletedNoteResponse],
        tags=["Notes"],
        summary="Delete a note by ID",
    )
    def delete_note(
        note_id: str = Path(..., min_length=1),
        current_user: Identity = Depends(get_current_user),
        notes: NoteService = Depends(get_note_service),
    ):
        """
        Delete a note. Only the owner can delete it.

        Raises:
            404 if the note does not exist, 403 if it belongs to another user.
        """
        note = notes.delete_note(current_user, note_id)
        return ApiResponse[DeletedNoteResponse](
            message=messages.NOTE_DELETED,
            data=DeletedNoteResponse(id=note.id),
        )

    return router


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
