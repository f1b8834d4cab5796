from __future__ import annotations

from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Iterable, Iterator
from uuid import UUID

from sqlalchemy import or_
from sqlmodel import Session, func, select

from contacthub.models.base import utcnow
from contacthub.models.contact import Contact, ContactConsent, ContactSource


@dataclass
class ContactDraft:
    user_id: UUID
    full_name: str
    phone: str
    email: str | None = None
    company: str | None = None
    job_title: str | None = None
    source: ContactSource = ContactSource.MANUAL
    consent: ContactConsent = ContactConsent.UNKNOWN


class ContactRepository:
    """Owner-scoped contact queries and inserts on top of a SQLModel session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_candidates(self, owner_id: UUID, phone_fragment: str | None, email: str | None) -> list[Contact]:
        """Contacts whose phone contains ``phone_fragment`` or whose email equals ``email``."""
        return self._find_loose(owner_id, [phone_fragment] if phone_fragment else [], [email] if email else [])

    def find_by_owner_and_phone_in(self, owner_id: UUID, phone_fragments: Iterable[str]) -> list[Contact]:
        return self._find_loose(owner_id, list(phone_fragments), [])

    def find_by_owner_and_email_in(self, owner_id: UUID, emails: Iterable[str]) -> list[Contact]:
        return self._find_loose(owner_id, [], list(emails))

    def find_by_owner_and_ids(self, owner_id: UUID, contact_ids: Iterable[UUID]) -> list[Contact]:
        ids = list(contact_ids)
        if not ids:
            return []
        statement = (
            select(Contact)
            .where(Contact.user_id == owner_id)
            .where(Contact.id.in_(ids))  # type: ignore[attr-defined]
            .order_by(Contact.created_at, Contact.id)
        )
        return list(self.session.exec(statement).all())

    def insert(self, draft: ContactDraft) -> Contact:
        now = utcnow()
        contact = Contact(**asdict(draft), created_at=now, updated_at=now)
        self.session.add(contact)
        self.session.flush()
        return contact

    def delete(self, contact: Contact) -> None:
        self.session.delete(contact)
        self.session.flush()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        try:
            yield self.session
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _find_loose(self, owner_id: UUID, phone_fragments: list[str], emails: list[str]) -> list[Contact]:
        clauses = [Contact.phone.contains(fragment, autoescape=True) for fragment in phone_fragments if fragment]
        lowered = sorted({email.strip().lower() for email in emails if email and email.strip()})
        if lowered:
            clauses.append(func.lower(Contact.email).in_(lowered))
        if not clauses:
            return []
        statement = (
            select(Contact)
            .where(Contact.user_id == owner_id)
            .where(or_(*clauses))
            .order_by(Contact.created_at, Contact.id)
        )
        return list(self.session.exec(statement).all())
