from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlmodel import Field

from contacthub.models.base import TimestampedModel, UUIDModel, timestamp_field, utcnow


@dataclass(frozen=True)
class ApiKeyActive:
    pass


@dataclass(frozen=True)
class ApiKeyRevoked:
    at: datetime


ApiKeyState = ApiKeyActive | ApiKeyRevoked


class ApiKeyAlreadyRevokedError(ValueError):
    pass


class ApiKey(UUIDModel, TimestampedModel, table=True):
    """Key used by external web forms to submit contacts on behalf of a user.

    Only the SHA-256 hash of the plaintext is stored. Keys are never deleted;
    revoking sets ``revoked_at`` and keeps the row for auditing.
    """

    __tablename__ = "api_keys"

    user_id: UUID = Field(foreign_key="users.id", index=True)
    name: str = Field(default="Default", max_length=255)
    key_hash: str = Field(max_length=64, index=True, unique=True)
    key_suffix: str = Field(max_length=4)
    last_used_at: datetime | None = timestamp_field()
    revoked_at: datetime | None = timestamp_field(index=True)

    @property
    def state(self) -> ApiKeyState:
        if self.revoked_at is None:
            return ApiKeyActive()
        return ApiKeyRevoked(at=self.revoked_at)

    @property
    def is_active(self) -> bool:
        return isinstance(self.state, ApiKeyActive)

    def revoke(self, at: datetime | None = None) -> ApiKeyRevoked:
        if isinstance(self.state, ApiKeyRevoked):
            raise ApiKeyAlreadyRevokedError("API key already revoked")
        self.revoked_at = at or utcnow()
        self.updated_at = self.revoked_at
        return ApiKeyRevoked(at=self.revoked_at)
