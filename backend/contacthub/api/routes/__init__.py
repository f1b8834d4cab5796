from . import api_keys, auth, contacts, health, public

__all__ = [
    "api_keys",
    "auth",
    "contacts",
    "health",
    "public",
]
