from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from contacthub.core.config import settings
from contacthub.core.logging_setup import logger
from contacthub.db.repository import ContactDraft, ContactRepository
from contacthub.models.base import utcnow
from contacthub.models.contact import Contact, ContactConsent, ContactSource
from contacthub.schemas.contact import ContactBatchChanges, ContactInput, PublicContactInput, first_error_message
from contacthub.services.duplicates import DuplicateDetectionService, DuplicateIndex
from contacthub.services.phone import normalize_phone

PUBLIC_SUBMISSION_SOURCE = ContactSource.FORM


class BatchLimitError(ValueError):
    def __init__(self, message: str, field_name: str = "contacts") -> None:
        super().__init__(message)
        self.field_name = field_name


class ContactIngestionError(RuntimeError):
    pass


@dataclass
class ContactCreated:
    contact: Contact


@dataclass
class DuplicateContact:
    existing: Contact


@dataclass
class BatchDuplicate:
    input: dict[str, Any]
    existing: Contact


@dataclass
class BatchError:
    input: dict[str, Any]
    message: str


@dataclass
class BatchResult:
    created: list[Contact] = field(default_factory=list)
    duplicates: list[BatchDuplicate] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.created) + len(self.duplicates) + len(self.errors)


class ContactService:
    """Creates contacts for an owner, singly or in batches, refusing duplicates."""

    def __init__(self, session: Session, repository: ContactRepository | None = None) -> None:
        self.session = session
        self.repository = repository or ContactRepository(session)
        self.duplicates = DuplicateDetectionService(self.repository)

    def create_contact(self, owner_id: UUID, data: ContactInput) -> ContactCreated | DuplicateContact:
        existing = self.duplicates.find_duplicate(owner_id, data.phone, data.email)
        if existing is not None:
            return DuplicateContact(existing=existing)

        with self.repository.transaction():
            contact = self.repository.insert(
                self._draft(
                    owner_id,
                    data,
                    source=data.source or ContactSource.MANUAL,
                    consent=data.consent or ContactConsent.UNKNOWN,
                )
            )
        self.session.refresh(contact)
        logger.info("Contact %s created for owner %s (source=%s)", contact.id, owner_id, contact.source.value)
        return ContactCreated(contact=contact)

    def submit_public(self, owner_id: UUID, data: PublicContactInput) -> ContactCreated | DuplicateContact:
        """Create a contact sent by an external form; source and consent are not caller-controlled."""
        existing = self.duplicates.find_duplicate(owner_id, data.phone, data.email)
        if existing is not None:
            return DuplicateContact(existing=existing)

        with self.repository.transaction():
            contact = self.repository.insert(
                self._draft(owner_id, data, source=PUBLIC_SUBMISSION_SOURCE, consent=ContactConsent.UNKNOWN)
            )
        self.session.refresh(contact)
        logger.info("Public submission stored as contact %s for owner %s", contact.id, owner_id)
        return ContactCreated(contact=contact)

    def create_batch(self, owner_id: UUID, records: list[dict[str, Any]]) -> BatchResult:
        """Create many contacts in one transaction.

        Every record lands in exactly one bucket: ``created``, ``duplicates``
        (against stored contacts or an earlier record of the same batch) or
        ``errors`` (field validation). Invalid or duplicate records never abort
        the batch; any other failure rolls the whole batch back.
        """
        if not records:
            raise BatchLimitError("At least one contact is required.")
        if len(records) > settings.batch_max_contacts:
            raise BatchLimitError(f"Maximum {settings.batch_max_contacts} contacts per batch.")

        result = BatchResult()
        try:
            with self.repository.transaction():
                existing = self.duplicates.build_index(
                    owner_id,
                    (record.get("phone") for record in records),
                    (record.get("email") for record in records),
                )
                seen = DuplicateIndex()

                for record in records:
                    phone = record.get("phone")
                    email = record.get("email")

                    match = (
                        existing.match_phone(phone)
                        or seen.match_phone(phone)
                        or existing.match_email(email)
                        or seen.match_email(email)
                    )
                    if match is not None:
                        result.duplicates.append(BatchDuplicate(input=record, existing=match))
                        continue

                    try:
                        data = ContactInput.model_validate(record)
                    except ValidationError as exc:
                        result.errors.append(BatchError(input=record, message=first_error_message(exc)))
                        continue

                    contact = self.repository.insert(
                        self._draft(
                            owner_id,
                            data,
                            source=data.source or ContactSource.MANUAL,
                            consent=data.consent or ContactConsent.UNKNOWN,
                        )
                    )
                    result.created.append(contact)
                    seen.add(contact)
        except SQLAlchemyError as exc:
            logger.exception("Batch of %d contacts for owner %s rolled back", len(records), owner_id)
            raise ContactIngestionError("Failed to create contacts") from exc

        for contact in result.created:
            self.session.refresh(contact)
        logger.info(
            "Batch for owner %s: %d created, %d duplicates, %d errors",
            owner_id,
            len(result.created),
            len(result.duplicates),
            len(result.errors),
        )
        return result

    def update_batch(self, owner_id: UUID, ids: Sequence[UUID], changes: ContactBatchChanges) -> list[Contact]:
        """Apply the same field changes to every listed contact the owner has.

        Ids that are unknown or belong to another owner are skipped without error.
        Empty fields in ``changes`` leave the stored value untouched.
        """
        self._check_ids(ids)
        values = changes.model_dump(exclude_none=True)

        try:
            with self.repository.transaction():
                contacts = self.repository.find_by_owner_and_ids(owner_id, ids)
                now = utcnow()
                for contact in contacts:
                    for name, value in values.items():
                        setattr(contact, name, value)
                    contact.updated_at = now
                    self.session.add(contact)
        except SQLAlchemyError as exc:
            logger.exception("Batch update of %d contacts for owner %s rolled back", len(ids), owner_id)
            raise ContactIngestionError("Failed to update contacts") from exc

        for contact in contacts:
            self.session.refresh(contact)
        logger.info("Batch update for owner %s: %d of %d contacts changed", owner_id, len(contacts), len(ids))
        return contacts

    def delete_batch(self, owner_id: UUID, ids: Sequence[UUID]) -> int:
        self._check_ids(ids)
        try:
            with self.repository.transaction():
                contacts = self.repository.find_by_owner_and_ids(owner_id, ids)
                for contact in contacts:
                    self.repository.delete(contact)
        except SQLAlchemyError as exc:
            logger.exception("Batch delete of %d contacts for owner %s rolled back", len(ids), owner_id)
            raise ContactIngestionError("Failed to delete contacts") from exc

        logger.info("Batch delete for owner %s: %d of %d contacts removed", owner_id, len(contacts), len(ids))
        return len(contacts)

    @staticmethod
    def _check_ids(ids: Sequence[UUID]) -> None:
        if not ids:
            raise BatchLimitError("At least one contact ID is required.", field_name="ids")
        if len(ids) > settings.batch_max_contacts:
            raise BatchLimitError(f"Maximum {settings.batch_max_contacts} contacts per batch.", field_name="ids")

    @staticmethod
    def _draft(
        owner_id: UUID,
        data: PublicContactInput,
        *,
        source: ContactSource,
        consent: ContactConsent,
    ) -> ContactDraft:
        return ContactDraft(
            user_id=owner_id,
            full_name=data.full_name,
            phone=normalize_phone(data.phone) or data.phone,
            email=str(data.email) if data.email else None,
            company=data.company,
            job_title=data.job_title,
            source=source,
            consent=consent,
        )
