import enum
import logging
from typing import NamedTuple, Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from secure_notes.database import get_db
from secure_notes.errors import (
    AppError,
    IdentityNotFoundError,
    TokenExpiredError,
    TokenMalformedError,
    TokenMissingError,
)
from secure_notes.schemas import Identity
from secure_notes.security import PasswordHasher, TokenCodec
from secure_notes.stores import NoteStore, UserStore

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Documents the header in OpenAPI; parsing is done by extract_bearer_token
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


class AuthState(str, enum.Enum):
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


class AuthOutcome(NamedTuple):
    """Result of the authentication gate for a single request."""
    state: AuthState
    identity: Optional[Identity] = None
    error: Optional[AppError] = None

    @property
    def authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED


def extract_bearer_token(header: Optional[str]) -> str:
    """Return the token after a case-sensitive 'Bearer ' prefix."""
    if not header or not header.startswith(BEARER_PREFIX):
        raise TokenMissingError()
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise TokenMissingError()
    return token


# PUBLIC_INTERFACE
def authenticate(header: Optional[str], codec: TokenCodec, users: UserStore) -> AuthOutcome:
    """
    Resolve an Authorization header into an identity.

    Missing header, malformed/forged token, expired token and vanished
    identity each produce a REJECTED outcome carrying a distinct error.
    Store failures are not rejections and propagate.
    """
    try:
        token = extract_bearer_token(header)
        claims = codec.verify(token)
    except (TokenMissingError, TokenMalformedError, TokenExpiredError) as exc:
        return AuthOutcome(AuthState.REJECTED, error=exc)

    identity = users.find_by_id(claims.identity_id)
    if identity is None:
        return AuthOutcome(AuthState.REJECTED, error=IdentityNotFoundError())
    return AuthOutcome(AuthState.AUTHENTICATED, identity=identity)


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_user_store(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserStore:
    return UserStore(db, hasher)


def get_note_store(db: Session = Depends(get_db)) -> NoteStore:
    return NoteStore(db)


# PUBLIC_INTERFACE
def get_current_user(
    request: Request,
    header: Optional[str] = Depends(authorization_header),
    codec: TokenCodec = Depends(get_token_codec),
    users: UserStore = Depends(get_user_store),
) -> Identity:
    """
    Dependency that returns the currently authenticated identity based on the
    JWT bearer token. The route body never runs for a rejected request.

    Raises:
        401 with a message distinguishing missing, invalid and expired tokens.
    """
    outcome = authenticate(header, codec, users)
    if not outcome.authenticated:
        logger.info(
            "Rejected %s %s: %s", request.method, request.url.path, type(outcome.error).__name__
        )
        raise outcome.error
    return outcome.identity
