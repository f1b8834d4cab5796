"""Duplicate detection for contacts within one owner's address book.

Storage is queried with a deliberately loose prefilter (last digits of the
phone as a substring, or the lower-cased email) so rows saved before phone
normalization are still found. Every candidate is then re-checked with an
exact comparison of normalized phones before it is reported as a duplicate.
Phone matches always win over email matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable
from uuid import UUID

from contacthub.core.logging_setup import logger
from contacthub.db.repository import ContactRepository
from contacthub.models.contact import Contact
from contacthub.services.phone import normalize_for_comparison, phone_match_fragment


def normalize_email(email: str | None) -> str | None:
    if not isinstance(email, str):
        return None
    return email.strip().lower() or None


@dataclass
class DuplicateIndex:
    """In-memory lookup of an owner's contacts keyed by comparison phone and email."""

    by_phone: dict[str, Contact] = field(default_factory=dict)
    by_email: dict[str, Contact] = field(default_factory=dict)

    def add(self, contact: Contact) -> None:
        phone_key = normalize_for_comparison(contact.phone)
        if phone_key:
            self.by_phone.setdefault(phone_key, contact)
        email_key = normalize_email(contact.email)
        if email_key:
            self.by_email.setdefault(email_key, contact)

    def match_phone(self, phone: str | None) -> Contact | None:
        phone_key = normalize_for_comparison(phone)
        return self.by_phone.get(phone_key) if phone_key else None

    def match_email(self, email: str | None) -> Contact | None:
        email_key = normalize_email(email)
        return self.by_email.get(email_key) if email_key else None

    def match(self, phone: str | None, email: str | None) -> Contact | None:
        return self.match_phone(phone) or self.match_email(email)


class DuplicateDetectionService:
    def __init__(self, repository: ContactRepository) -> None:
        self.repository = repository

    def find_duplicate(self, owner_id: UUID, phone: str | None, email: str | None = None) -> Contact | None:
        """Return the owner's existing contact matching ``phone`` (first) or ``email``, if any."""
        comparison_phone = normalize_for_comparison(phone)
        email_key = normalize_email(email)
        if not comparison_phone and not email_key:
            return None

        fragment = phone_match_fragment(comparison_phone) if comparison_phone else None
        candidates = self.repository.find_candidates(owner_id, fragment, email_key)

        if comparison_phone:
            for candidate in candidates:
                if normalize_for_comparison(candidate.phone) == comparison_phone:
                    logger.debug("Duplicate by phone for owner %s: contact %s", owner_id, candidate.id)
                    return candidate

        if email_key:
            for candidate in candidates:
                if normalize_email(candidate.email) == email_key:
                    logger.debug("Duplicate by email for owner %s: contact %s", owner_id, candidate.id)
                    return candidate

        return None

    def is_duplicate(self, owner_id: UUID, phone: str | None, email: str | None = None) -> bool:
        return self.find_duplicate(owner_id, phone, email) is not None

    def build_index(self, owner_id: UUID, phones: Iterable[str | None], emails: Iterable[str | None]) -> DuplicateIndex:
        """Load every stored contact that could match the given phones or emails, in two queries."""
        fragments = {
            phone_match_fragment(comparison)
            for comparison in (normalize_for_comparison(phone) for phone in phones)
            if comparison
        }
        email_keys = {key for key in (normalize_email(email) for email in emails) if key}

        index = DuplicateIndex()
        if fragments:
            for contact in self.repository.find_by_owner_and_phone_in(owner_id, sorted(fragments)):
                index.add(contact)
        if email_keys:
            for contact in self.repository.find_by_owner_and_email_in(owner_id, sorted(email_keys)):
                index.add(contact)
        return index
