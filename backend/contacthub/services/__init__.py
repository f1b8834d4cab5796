from contacthub.services.api_key import ApiKeyService
from contacthub.services.auth import AuthService
from contacthub.services.contact import ContactService
from contacthub.services.duplicates import DuplicateDetectionService

__all__ = [
    "ApiKeyService",
    "AuthService",
    "ContactService",
    "DuplicateDetectionService",
]
