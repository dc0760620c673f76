import logging
from typing import NamedTuple, Optional

from fastapi import Depends

from secure_notes.auth import get_note_store, get_token_codec, get_user_store
from secure_notes.authorization import require_note_owner
from secure_notes.errors import DuplicateError, InvalidCredentialError
from secure_notes.schemas import Identity, NoteListResponse, NoteRecord, NoteResponse
from secure_notes.security import TokenCodec
from secure_notes.stores import NoteStore, UserStore

logger = logging.getLogger(__name__)


class LoginResult(NamedTuple):
    token: str
    profile: Identity


class AuthService:
    """Registration and login on top of the user store and token codec."""

    def __init__(self, users: UserStore, codec: TokenCodec):
        self.users = users
        self.codec = codec

    def register(self, email: str, password: str) -> Identity:
        """
        Create a new identity.

        Raises:
            DuplicateError: the email is already registered, either seen by
                the pre-check or rejected by the unique index on insert.
        """
        if self.users.exists(email):
            raise DuplicateError()
        identity = self.users.create(email, password)
        logger.info("New user registered: %s", identity.email)
        return identity

    def login(self, email: str, password: str) -> LoginResult:
        """
        Check credentials and issue a token.

        Unknown email and wrong password raise the same error so callers
        cannot tell which one was wrong.
        """
        user = self.users.find_by_email_with_credential(email)
        if user is None:
            # Spend the same bcrypt time as a real check
            self.users.hasher.dummy_verify()
            raise InvalidCredentialError()
        if not self.users.hasher.verify(password, user.password_hash):
            raise InvalidCredentialError()
        token = self.codec.issue(user.id, user.email)
        logger.info("User logged in: %s", user.email)
        profile = Identity.model_validate(user.model_dump(exclude={"password_hash"}))
        return LoginResult(token=token, profile=profile)


class NoteService:
    """Owner-scoped note operations for an authenticated identity."""

    def __init__(self, notes: NoteStore):
        self.notes = notes

    def list_notes(
        self,
        owner: Identity,
        search: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> NoteListResponse:
        """
        A non-empty search term wins over pagination; pagination needs both
        page and limit; otherwise every note is returned.
        """
        if search:
            notes = self.notes.search_by_title(owner.id, search)
        elif page and limit:
            result = self.notes.paginate(owner.id, page, limit)
            return NoteListResponse(
                notes=[_to_response(n) for n in result.notes],
                total=result.total,
                page=result.page,
                total_pages=result.total_pages,
            )
        else:
            notes = self.notes.find_by_owner(owner.id)
        logger.info("Fetched %d notes for user: %s", len(notes), owner.email)
        return NoteListResponse(notes=[_to_response(n) for n in notes], total=len(notes))

    def create_note(self, owner: Identity, title: str, content: str) -> NoteRecord:
        note = self.notes.create(owner.id, title, content)
        logger.info("Note created by user: %s", owner.email)
        return note

    def delete_note(self, caller: Identity, note_id: str) -> NoteRecord:
        """
        Raises:
            ResourceNotFoundError: no such note.
            ForbiddenError: the note belongs to someone else.
        """
        note = require_note_owner(self.notes, caller.id, note_id)
        self.notes.delete_by_id(note.id)
        logger.info("Note deleted by user: %s", caller.email)
        return note


def _to_response(note: NoteRecord) -> NoteResponse:
    return NoteResponse.model_validate(note)


def get_auth_service(
    users: UserStore = Depends(get_user_store),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(users, codec)


def get_note_service(notes: NoteStore = Depends(get_note_store)) -> NoteService:
    return NoteService(notes)
