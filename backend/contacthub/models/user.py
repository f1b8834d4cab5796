from datetime import datetime
from enum import Enum

from sqlmodel import Field

from contacthub.models.base import TimestampedModel, UUIDModel, timestamp_field


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class User(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "users"

    name: str = Field(max_length=255)
    email: str = Field(index=True, unique=True, max_length=255)
    password_hash: str
    role: str = Field(default=UserRole.USER.value, max_length=16)
    phone: str | None = Field(default=None, max_length=32)
    avatar_url: str | None = Field(default=None, max_length=512)
    is_active: bool = Field(default=True)
    last_login_at: datetime | None = timestamp_field()
