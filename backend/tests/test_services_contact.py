from uuid import uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, func, select

from contacthub.core.config import settings
from contacthub.db.repository import ContactDraft, ContactRepository
from contacthub.models.contact import Contact, ContactConsent, ContactSource
from contacthub.models.user import User
from contacthub.schemas.contact import ContactBatchChanges, ContactInput, PublicContactInput
from contacthub.services.contact import (
    BatchLimitError,
    ContactCreated,
    ContactIngestionError,
    ContactService,
    DuplicateContact,
)


def _count_contacts(db_session: Session, owner: User) -> int:
    with Session(db_session.get_bind()) as verify_session:  # type: ignore[arg-type]
        statement = select(func.count()).select_from(Contact).where(Contact.user_id == owner.id)
        return verify_session.exec(statement).one()


def _record(index: int, **overrides) -> dict:
    record = {
        "fullName": f"Contact {index}",
        "phone": f"0812000000{index:02d}",
        "email": f"contact{index}@example.com",
    }
    record.update(overrides)
    return record


def test_create_contact_normalizes_phone_and_applies_defaults(db_session: Session, owner: User) -> None:
    service = ContactService(db_session)

    result = service.create_contact(owner.id, ContactInput(full_name="Ana", phone="0812-3456-7890"))

    assert isinstance(result, ContactCreated)
    assert result.contact.phone == "+6281234567890"
    assert result.contact.source == ContactSource.MANUAL
    assert result.contact.consent == ContactConsent.UNKNOWN
    assert result.contact.user_id == owner.id


def test_create_contact_returns_existing_on_duplicate(db_session: Session, owner: User) -> None:
    service = ContactService(db_session)
    first = service.create_contact(owner.id, ContactInput(full_name="Ana", phone="+6281234567890"))
    assert isinstance(first, ContactCreated)

    second = service.create_contact(
        owner.id,
        ContactInput(full_name="Ana again", phone="6281234567890", email="x@y.com"),
    )

    assert isinstance(second, DuplicateContact)
    assert second.existing.id == first.contact.id
    assert _count_contacts(db_session, owner) == 1


def test_same_phone_is_allowed_for_another_owner(db_session: Session, owner: User, other_owner: User) -> None:
    service = ContactService(db_session)
    service.create_contact(owner.id, ContactInput(full_name="Ana", phone="+6281234567890"))

    result = service.create_contact(other_owner.id, ContactInput(full_name="Ana", phone="+6281234567890"))

    assert isinstance(result, ContactCreated)
    assert result.contact.user_id == other_owner.id


def test_public_submission_forces_form_source(db_session: Session, owner: User) -> None:
    service = ContactService(db_session)
    data = PublicContactInput.model_validate(
        {"fullName": "Budi", "phone": "081298765432", "jobTitle": "CTO", "source": "manual", "consent": "opt_in"}
    )

    result = service.submit_public(owner.id, data)

    assert isinstance(result, ContactCreated)
    assert result.contact.source == ContactSource.FORM
    assert result.contact.consent == ContactConsent.UNKNOWN
    assert result.contact.job_title == "CTO"


def test_batch_repeated_phone_references_first_created_contact(db_session: Session, owner: User) -> None:
    records = [_record(i) for i in range(5)]
    records[3] = _record(3, phone="+62 812 0000 0000", email=None)

    result = ContactService(db_session).create_batch(owner.id, records)

    assert [c.full_name for c in result.created] == ["Contact 0", "Contact 1", "Contact 2", "Contact 4"]
    assert len(result.duplicates) == 1
    assert result.duplicates[0].input is records[3]
    assert result.duplicates[0].existing.id == result.created[0].id
    assert result.errors == []


def test_batch_repeated_email_is_a_batch_local_duplicate(db_session: Session, owner: User) -> None:
    records = [_record(0), _record(1, email="CONTACT0@example.com")]

    result = ContactService(db_session).create_batch(owner.id, records)

    assert len(result.created) == 1
    assert result.duplicates[0].existing.id == result.created[0].id


def test_batch_single_invalid_record_goes_to_errors(db_session: Session, owner: User) -> None:
    records = [_record(i) for i in range(4)]
    records[2] = _record(2, fullName="")

    result = ContactService(db_session).create_batch(owner.id, records)

    assert len(result.errors) == 1
    assert result.errors[0].input is records[2]
    assert "name" in result.errors[0].message.lower()
    assert len(result.created) == 3
    assert result.total == len(records)
    assert _count_contacts(db_session, owner) == 3


@pytest.mark.parametrize(
    "overrides",
    [
        {"phone": ""},
        {"email": "not-an-email"},
        {"source": "api"},
        {"consent": "maybe"},
        {"phone": "call me"},
    ],
)
def test_batch_field_validation_errors(db_session: Session, owner: User, overrides: dict) -> None:
    result = ContactService(db_session).create_batch(owner.id, [_record(0, **overrides)])

    assert result.created == []
    assert len(result.errors) == 1
    assert result.errors[0].message


def test_batch_accepts_snake_and_camel_case(db_session: Session, owner: User) -> None:
    records = [
        {"full_name": "Snake", "phone": "081211111111", "job_title": "Dev", "source": "import", "consent": "opt_in"},
        {"fullName": "Camel", "phone": "081222222222", "jobTitle": "Ops", "source": "ocr_list"},
    ]

    result = ContactService(db_session).create_batch(owner.id, records)

    snake, camel = result.created
    assert (snake.job_title, snake.source, snake.consent) == ("Dev", ContactSource.IMPORT, ContactConsent.OPT_IN)
    assert (camel.job_title, camel.source, camel.consent) == ("Ops", ContactSource.OCR_LIST, ContactConsent.UNKNOWN)


def test_batch_detects_stored_duplicates_across_formats(db_session: Session, owner: User) -> None:
    service = ContactService(db_session)
    stored = service.create_contact(owner.id, ContactInput(full_name="Stored", phone="+6281200000001"))
    assert isinstance(stored, ContactCreated)

    result = service.create_batch(owner.id, [_record(1), _record(2)])

    assert len(result.duplicates) == 1
    assert result.duplicates[0].existing.id == stored.contact.id
    assert [c.full_name for c in result.created] == ["Contact 2"]


def test_batch_duplicate_check_runs_before_validation(db_session: Session, owner: User) -> None:
    records = [_record(0), _record(1, phone="081200000000", fullName="")]

    result = ContactService(db_session).create_batch(owner.id, records)

    assert len(result.duplicates) == 1
    assert result.errors == []


def test_batch_over_limit_is_rejected_without_side_effects(db_session: Session, owner: User) -> None:
    records = [_record(i) for i in range(settings.batch_max_contacts + 1)]

    with pytest.raises(BatchLimitError) as exc_info:
        ContactService(db_session).create_batch(owner.id, records)

    assert exc_info.value.field_name == "contacts"
    assert _count_contacts(db_session, owner) == 0


def test_empty_batch_is_rejected(db_session: Session, owner: User) -> None:
    with pytest.raises(BatchLimitError):
        ContactService(db_session).create_batch(owner.id, [])
    assert _count_contacts(db_session, owner) == 0


def test_batch_storage_failure_rolls_back_everything(db_session: Session, owner: User, monkeypatch) -> None:
    service = ContactService(db_session)
    original_insert = service.repository.insert
    calls = {"count": 0}

    def failing_insert(draft):
        calls["count"] += 1
        if calls["count"] == 3:
            raise OperationalError("INSERT INTO contacts", {}, Exception("disk I/O error"))
        return original_insert(draft)

    monkeypatch.setattr(service.repository, "insert", failing_insert)

    with pytest.raises(ContactIngestionError):
        service.create_batch(owner.id, [_record(i) for i in range(5)])

    assert _count_contacts(db_session, owner) == 0


def test_inserted_contact_has_timezone_aware_timestamps(db_session: Session, owner: User) -> None:
    repository = ContactRepository(db_session)

    contact = repository.insert(ContactDraft(user_id=owner.id, full_name="Ana", phone="+6281234567890"))

    assert contact.created_at.tzinfo is not None
    assert contact.updated_at is not None and contact.updated_at.tzinfo is not None
    db_session.rollback()


def test_batch_phone_match_in_same_batch_wins_over_stored_email_match(db_session: Session, owner: User) -> None:
    service = ContactService(db_session)
    stored = service.create_contact(
        owner.id,
        ContactInput(full_name="Stored", phone="+6281111111111", email="shared@example.com"),
    )
    assert isinstance(stored, ContactCreated)

    result = service.create_batch(
        owner.id,
        [
            {"fullName": "First", "phone": "082222222222", "email": "first@example.com"},
            {"fullName": "Second", "phone": "+6282222222222", "email": "shared@example.com"},
        ],
    )

    assert len(result.created) == 1
    assert len(result.duplicates) == 1
    assert result.duplicates[0].existing.id == result.created[0].id


def _create(service: ContactService, owner: User, index: int) -> Contact:
    result = service.create_contact(owner.id, ContactInput.model_validate(_record(index)))
    assert isinstance(result, ContactCreated)
    return result.contact


def test_update_batch_changes_only_owned_contacts(db_session: Session, owner: User, other_owner: User) -> None:
    service = ContactService(db_session)
    mine = [_create(service, owner, 1), _create(service, owner, 2)]
    foreign = _create(service, other_owner, 3)

    updated = service.update_batch(
        owner.id,
        [mine[0].id, mine[1].id, foreign.id, uuid4()],
        ContactBatchChanges(company="Acme", consent=ContactConsent.OPT_IN),
    )

    assert sorted(contact.id for contact in updated) == sorted(contact.id for contact in mine)
    assert all(contact.company == "Acme" for contact in updated)
    assert all(contact.consent == ContactConsent.OPT_IN for contact in updated)
    assert all(contact.job_title is None for contact in updated)
    with Session(db_session.get_bind()) as verify_session:  # type: ignore[arg-type]
        untouched = verify_session.get(Contact, foreign.id)
        assert untouched is not None
        assert untouched.company is None
        assert untouched.consent == ContactConsent.UNKNOWN


def test_batch_changes_ignore_other_fields_and_require_one_change() -> None:
    changes = ContactBatchChanges.model_validate({"jobTitle": "CTO", "phone": "+6280000000000"})
    assert changes.model_dump(exclude_none=True) == {"job_title": "CTO"}

    with pytest.raises(ValidationError):
        ContactBatchChanges.model_validate({"full_name": "Not allowed"})
    with pytest.raises(ValidationError):
        ContactBatchChanges.model_validate({"consent": "maybe"})


def test_delete_batch_removes_only_owned_contacts(db_session: Session, owner: User, other_owner: User) -> None:
    service = ContactService(db_session)
    mine = _create(service, owner, 1)
    kept = _create(service, owner, 2)
    foreign = _create(service, other_owner, 3)

    removed = service.delete_batch(owner.id, [mine.id, foreign.id])

    assert removed == 1
    assert _count_contacts(db_session, owner) == 1
    assert _count_contacts(db_session, other_owner) == 1
    with Session(db_session.get_bind()) as verify_session:  # type: ignore[arg-type]
        assert verify_session.get(Contact, kept.id) is not None
        assert verify_session.get(Contact, mine.id) is None


@pytest.mark.parametrize("count", [0, settings.batch_max_contacts + 1])
def test_batch_update_and_delete_enforce_id_limits(db_session: Session, owner: User, count: int) -> None:
    service = ContactService(db_session)
    ids = [uuid4() for _ in range(count)]

    with pytest.raises(BatchLimitError) as update_error:
        service.update_batch(owner.id, ids, ContactBatchChanges(company="Acme"))
    with pytest.raises(BatchLimitError) as delete_error:
        service.delete_batch(owner.id, ids)

    assert update_error.value.field_name == "ids"
    assert delete_error.value.field_name == "ids"
