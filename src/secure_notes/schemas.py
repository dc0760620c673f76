from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from secure_notes import messages

DataT = TypeVar("DataT")


# Stored records (internal shapes returned by the stores)

class Identity(BaseModel):
    """Public identity record. Never carries the password hash."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    email: str
    created_at: datetime
    updated_at: datetime


class IdentityWithCredential(Identity):
    """Identity plus its bcrypt hash, for the login path only."""
    password_hash: str


class NoteRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    owner_id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime


class NotePage(BaseModel):
    notes: List[NoteRecord]
    total: int
    page: int
    total_pages: int


# Response envelope

class CamelModel(BaseModel):
    """Response models serialize with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope shared by every endpoint"""
    success: bool = True
    message: str
    data: Optional[DataT] = None


# Auth / Users

class UserCreateRequest(BaseModel):
    """Request model to register a new user"""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., description="Plaintext password (min 6 chars)")

    @field_validator("password")
    @classmethod
    def _password_length(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise PydanticCustomError("password_required", messages.PASSWORD_REQUIRED)
        if len(value) < 6:
            raise PydanticCustomError("password_too_short", messages.INVALID_PASSWORD)
        return value


class LoginRequest(BaseModel):
    """Request model for email/password login"""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., description="Plaintext password")

    @field_validator("password")
    @classmethod
    def _password_present(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("password_required", messages.PASSWORD_REQUIRED)
        return value.strip()


class UserResponse(CamelModel):
    """User response without sensitive fields"""
    id: str
    email: str
    created_at: datetime


class LoginResponse(CamelModel):
    """Token and profile returned on successful login"""
    token: str = Field(..., description="JWT access token")
    profile: UserResponse


# Notes

class NoteCreateRequest(BaseModel):
    """Create note request. Content is opaque (encrypted client-side)."""
    title: str = Field(..., description="Plain text title, at most 200 characters")
    content: str = Field(..., description="Encrypted note content, stored verbatim")

    @field_validator("title")
    @classmethod
    def _title_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise PydanticCustomError("title_required", messages.TITLE_REQUIRED)
        if len(value) > 200:
            raise PydanticCustomError("title_too_long", "Title cannot exceed 200 characters")
        return value

    @field_validator("content")
    @classmethod
    def _content_present(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("content_required", messages.CONTENT_REQUIRED)
        return value


class NoteResponse(CamelModel):
    """Note response model"""
    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime


class NoteListResponse(CamelModel):
    """Notes listing; page and totalPages only appear for paginated requests"""
    notes: List[NoteResponse]
    total: int
    page: Optional[int] = None
    total_pages: Optional[int] = None


class DeletedNoteResponse(CamelModel):
    id: str


class HealthResponse(CamelModel):
    timestamp: datetime
