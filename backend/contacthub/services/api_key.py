from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlmodel import Session, func, select

from contacthub.core.config import settings
from contacthub.core.logging_setup import logger
from contacthub.models.api_key import ApiKey
from contacthub.models.base import utcnow
from contacthub.models.user import User
from contacthub.utils.security import generate_api_key_secret, hash_api_key


class ApiKeyLimitError(ValueError):
    pass


class ApiKeyNotFoundError(LookupError):
    pass


@dataclass(frozen=True)
class GeneratedKey:
    plaintext: str
    key_hash: str
    suffix: str


class ApiKeyService:
    """Issues, rotates and revokes the keys external forms use to submit contacts."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @staticmethod
    def generate_key() -> GeneratedKey:
        random_part = generate_api_key_secret()
        plaintext = f"{settings.api_key_prefix}{random_part}"
        return GeneratedKey(plaintext=plaintext, key_hash=hash_api_key(plaintext), suffix=random_part[-4:])

    def count_active(self, user_id: UUID) -> int:
        statement = select(func.count()).select_from(ApiKey).where(
            ApiKey.user_id == user_id,
            ApiKey.revoked_at.is_(None),  # type: ignore[union-attr]
        )
        return int(self.session.exec(statement).one())

    def list_active(self, user_id: UUID) -> list[ApiKey]:
        statement = (
            select(ApiKey)
            .where(ApiKey.user_id == user_id, ApiKey.revoked_at.is_(None))  # type: ignore[union-attr]
            .order_by(ApiKey.created_at.desc())
        )
        return list(self.session.exec(statement).all())

    def create(self, user_id: UUID, name: str | None = None) -> tuple[ApiKey, str]:
        """Create a key and return it with its plaintext, which is never retrievable again."""
        if self.count_active(user_id) >= settings.max_active_api_keys:
            raise ApiKeyLimitError(f"Maximum {settings.max_active_api_keys} API keys allowed per user")

        api_key, plaintext = self._new_key(user_id, (name or "").strip() or "Default")
        self.session.commit()
        self.session.refresh(api_key)
        logger.info("API key %s created for user %s", api_key.id, user_id)
        return api_key, plaintext

    def regenerate(self, user_id: UUID, key_id: UUID) -> tuple[ApiKey, str]:
        """Revoke ``key_id`` and issue a replacement with the same name, atomically."""
        old_key = self._get_active(user_id, key_id)
        try:
            old_key.revoke()
            self.session.add(old_key)
            new_key, plaintext = self._new_key(user_id, old_key.name)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(new_key)
        logger.info("API key %s regenerated as %s for user %s", key_id, new_key.id, user_id)
        return new_key, plaintext

    def revoke(self, user_id: UUID, key_id: UUID) -> ApiKey:
        api_key = self._get_active(user_id, key_id)
        api_key.revoke()
        self.session.add(api_key)
        self.session.commit()
        self.session.refresh(api_key)
        logger.info("API key %s revoked for user %s", key_id, user_id)
        return api_key

    def authenticate(self, plaintext: str) -> ApiKey | None:
        """Return the active key matching ``plaintext`` whose owner still exists and is active."""
        statement = select(ApiKey).where(
            ApiKey.key_hash == hash_api_key(plaintext),
            ApiKey.revoked_at.is_(None),  # type: ignore[union-attr]
        )
        api_key = self.session.exec(statement).first()
        if api_key is None:
            return None
        owner = self.session.get(User, api_key.user_id)
        if owner is None or not owner.is_active:
            return None
        return api_key

    def touch(self, api_key: ApiKey) -> None:
        api_key.last_used_at = utcnow()
        self.session.add(api_key)
        self.session.commit()

    def _get_active(self, user_id: UUID, key_id: UUID) -> ApiKey:
        api_key = self.session.get(ApiKey, key_id)
        if api_key is None or api_key.user_id != user_id or not api_key.is_active:
            raise ApiKeyNotFoundError("API key not found or already revoked")
        return api_key

    def _new_key(self, user_id: UUID, name: str) -> tuple[ApiKey, str]:
        generated = self.generate_key()
        api_key = ApiKey(
            user_id=user_id,
            name=name,
            key_hash=generated.key_hash,
            key_suffix=generated.suffix,
        )
        self.session.add(api_key)
        self.session.flush()
        return api_key, generated.plaintext
