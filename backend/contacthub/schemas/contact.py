from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from contacthub.models.contact import ContactConsent, ContactSource

PHONE_PATTERN = r"^\+?[0-9\s\-\(\)]+$"


class PublicContactInput(BaseModel):
    """Contact fields as submitted by callers.

    Both ``full_name``/``fullName`` and ``job_title``/``jobTitle`` are accepted;
    everything past this model uses the snake_case names.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    full_name: str = Field(
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("full_name", "fullName"),
    )
    phone: str = Field(min_length=1, max_length=255, pattern=PHONE_PATTERN)
    email: EmailStr | None = None
    company: str | None = Field(default=None, max_length=255)
    job_title: str | None = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("job_title", "jobTitle"),
    )

    @field_validator("email", "company", "job_title", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ContactInput(PublicContactInput):
    source: ContactSource | None = None
    consent: ContactConsent | None = None


class ContactRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    full_name: str
    phone: str
    email: str | None = None
    company: str | None = None
    job_title: str | None = None
    source: ContactSource
    consent: ContactConsent
    created_at: datetime
    updated_at: datetime | None = None


class ContactBatchCreate(BaseModel):
    contacts: list[dict[str, Any]]


class ContactBatchChanges(BaseModel):
    """Fields a batch update may touch; anything else in the payload is dropped."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    company: str | None = Field(default=None, max_length=255)
    job_title: str | None = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("job_title", "jobTitle"),
    )
    consent: ContactConsent | None = None

    @model_validator(mode="after")
    def _require_a_change(self) -> "ContactBatchChanges":
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field to update is required.")
        return self


class ContactBatchUpdate(BaseModel):
    ids: list[UUID]
    updates: ContactBatchChanges


class ContactBatchDelete(BaseModel):
    ids: list[UUID]


class DuplicateEntry(BaseModel):
    input: dict[str, Any]
    existing: ContactRead


class ErrorEntry(BaseModel):
    input: dict[str, Any]
    message: str


class ContactBatchResult(BaseModel):
    created: list[ContactRead] = Field(default_factory=list)
    duplicates: list[DuplicateEntry] = Field(default_factory=list)
    errors: list[ErrorEntry] = Field(default_factory=list)


class DuplicateContactResponse(BaseModel):
    message: str = "Duplicate contact detected"
    existing: ContactRead


class PublicContactResponse(BaseModel):
    data: ContactRead
    message: str = "Contact created successfully"


def first_error_message(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message
