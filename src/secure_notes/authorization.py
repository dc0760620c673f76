from secure_notes.errors import ForbiddenError, ResourceNotFoundError
from secure_notes.schemas import NoteRecord
from secure_notes.stores import NoteStore


# PUBLIC_INTERFACE
def authorize(identity_id: str, resource_owner_id: str) -> bool:
    """True when the caller owns the resource. Ids are compared as opaque strings."""
    return identity_id == resource_owner_id


# PUBLIC_INTERFACE
def require_note_owner(notes: NoteStore, caller_id: str, note_id: str) -> NoteRecord:
    """
    Load a note for a mutating operation on behalf of caller_id.

    Existence is checked before ownership, so a missing note is always
    reported as not found.

    Raises:
        ResourceNotFoundError: no note with this id.
        ForbiddenError: the note belongs to another identity.
    """
    note = notes.find_by_id(note_id)
    if note is None:
        raise ResourceNotFoundError()
    if not authorize(caller_id, note.owner_id):
        raise ForbiddenError()
    return note
