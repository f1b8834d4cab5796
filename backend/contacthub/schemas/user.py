from datetime import datetime

from pydantic import EmailStr

from contacthub.models.user import UserRole
from contacthub.schemas.common import IDModel, Timestamped


class UserRead(IDModel, Timestamped):
    name: str
    email: EmailStr
    role: UserRole
    phone: str | None = None
    avatar_url: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
