from __future__ import annotations

from enum import Enum
from uuid import UUID

from sqlmodel import Field

from contacthub.models.base import TimestampedModel, UUIDModel


class ContactSource(str, Enum):
    OCR_LIST = "ocr_list"
    FORM = "form"
    IMPORT = "import"
    MANUAL = "manual"


class ContactConsent(str, Enum):
    OPT_IN = "opt_in"
    OPT_OUT = "opt_out"
    UNKNOWN = "unknown"


class Contact(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "contacts"

    user_id: UUID = Field(foreign_key="users.id", index=True)
    full_name: str = Field(max_length=255)
    phone: str = Field(max_length=255, index=True)
    email: str | None = Field(default=None, max_length=255, index=True)
    company: str | None = Field(default=None, max_length=255)
    job_title: str | None = Field(default=None, max_length=255)
    source: ContactSource = Field(default=ContactSource.MANUAL)
    consent: ContactConsent = Field(default=ContactConsent.UNKNOWN)
