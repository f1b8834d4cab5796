from contacthub.schemas import api_key, auth, common, contact, user

__all__ = [
    "api_key",
    "auth",
    "common",
    "contact",
    "user",
]
