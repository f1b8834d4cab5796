from datetime import datetime

from pydantic import BaseModel, Field, computed_field

from contacthub.core.config import settings
from contacthub.schemas.common import IDModel, Timestamped


class ApiKeyCreate(BaseModel):
    name: str | None = Field(default=None, max_length=255)


class ApiKeyRead(IDModel, Timestamped):
    name: str
    key_suffix: str
    last_used_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def masked_key(self) -> str:
        return f"{settings.api_key_prefix}****...{self.key_suffix or '****'}"


class ApiKeyWithSecret(ApiKeyRead):
    key: str


class ApiKeyCreatedResponse(BaseModel):
    data: ApiKeyWithSecret
    message: str
