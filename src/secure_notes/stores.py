import logging
import math
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from secure_notes.errors import DuplicateError, InternalError
from secure_notes.models import Note, User
from secure_notes.schemas import Identity, IdentityWithCredential, NotePage, NoteRecord
from secure_notes.security import PasswordHasher

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


# PUBLIC_INTERFACE
def normalize_page_params(page, page_size) -> tuple:
    """
    Coerce raw page/limit values into safe positive integers.

    Absent, non-numeric, zero or negative values fall back to the defaults;
    page size is capped at MAX_PAGE_SIZE.
    """
    return (
        _positive_int(page, DEFAULT_PAGE),
        min(_positive_int(page_size, DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE),
    )


class UserStore:
    """
    Persistence for identities. Only find_by_email_with_credential returns
    the password hash; every other read returns a public Identity.
    """

    def __init__(self, db: Session, hasher: PasswordHasher):
        self.db = db
        self.hasher = hasher

    def create(self, email: str, plaintext_password: str) -> Identity:
        """
        Hash the password and insert a new user.

        Raises:
            DuplicateError: the unique email index rejected the insert.
        """
        user = User(email=normalize_email(email), password_hash=self.hasher.hash(plaintext_password))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateError()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise InternalError() from exc
        self.db.refresh(user)
        return Identity.model_validate(user)

    def find_by_email_with_credential(self, email: str) -> Optional[IdentityWithCredential]:
        user = self._query(User.email == normalize_email(email))
        return IdentityWithCredential.model_validate(user) if user else None

    def find_by_id(self, identity_id: str) -> Optional[Identity]:
        user = self._query(User.id == identity_id)
        return Identity.model_validate(user) if user else None

    def exists(self, email: str) -> bool:
        try:
            return self.db.query(User.id).filter(User.email == normalize_email(email)).first() is not None
        except SQLAlchemyError as exc:
            raise InternalError() from exc

    def _query(self, criterion) -> Optional[User]:
        try:
            return self.db.query(User).filter(criterion).first()
        except SQLAlchemyError as exc:
            raise InternalError() from exc


class NoteStore:
    """
    Persistence for notes. Every listing is scoped to one owner and ordered
    newest first by creation time.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, owner_id: str, title: str, content: str) -> NoteRecord:
        note = Note(owner_id=owner_id, title=title, content=content)
        self.db.add(note)
        self._commit()
        self.db.refresh(note)
        return NoteRecord.model_validate(note)

    def find_by_id(self, note_id: str) -> Optional[NoteRecord]:
        """Unscoped lookup; callers must follow it with an ownership check."""
        note = self._get(note_id)
        return NoteRecord.model_validate(note) if note else None

    def delete_by_id(self, note_id: str) -> Optional[NoteRecord]:
        note = self._get(note_id)
        if note is None:
            return None
        record = NoteRecord.model_validate(note)
        self.db.delete(note)
        self._commit()
        return record

    def find_by_owner(self, owner_id: str) -> List[NoteRecord]:
        return self._records(self._owned(owner_id))

    def search_by_title(self, owner_id: str, term: str) -> List[NoteRecord]:
        """Case-insensitive literal substring match on the title."""
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        query = self._owned(owner_id).filter(Note.title.ilike(f"%{escaped}%", escape="\\"))
        return self._records(query)

    def count_by_owner(self, owner_id: str) -> int:
        try:
            return self.db.query(Note).filter(Note.owner_id == owner_id).count()
        except SQLAlchemyError as exc:
            raise InternalError() from exc

    def paginate(self, owner_id: str, page=None, page_size=None) -> NotePage:
        page, page_size = normalize_page_params(page, page_size)
        total = self.count_by_owner(owner_id)
        notes = self._records(
            self._owned(owner_id).offset((page - 1) * page_size).limit(page_size)
        )
        return NotePage(
            notes=notes,
            total=total,
            page=page,
            total_pages=math.ceil(total / page_size),
        )

    def _owned(self, owner_id: str):
        # id breaks created_at ties so pages never overlap
        return (
            self.db.query(Note)
            .filter(Note.owner_id == owner_id)
            .order_by(Note.created_at.desc(), Note.id.desc())
        )

    def _records(self, query) -> List[NoteRecord]:
        try:
            return [NoteRecord.model_validate(n) for n in query.all()]
        except SQLAlchemyError as exc:
            raise InternalError() from exc

    def _get(self, note_id: str) -> Optional[Note]:
        try:
            return self.db.get(Note, note_id)
        except SQLAlchemyError as exc:
            raise InternalError() from exc

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise InternalError() from exc
