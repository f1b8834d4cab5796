# noqa: F401 to ensure models are imported for metadata
from contacthub.models.api_key import ApiKey
from contacthub.models.contact import Contact
from contacthub.models.user import User

__all__ = [
    "ApiKey",
    "Contact",
    "User",
]
