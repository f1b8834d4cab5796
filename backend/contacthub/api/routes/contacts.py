from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlmodel import Session

from contacthub.api.deps import get_current_active_user, get_db
from contacthub.models.user import User
from contacthub.schemas.contact import (
    ContactBatchCreate,
    ContactBatchDelete,
    ContactBatchResult,
    ContactBatchUpdate,
    ContactInput,
    ContactRead,
    DuplicateContactResponse,
    DuplicateEntry,
    ErrorEntry,
)
from contacthub.services.contact import BatchLimitError, ContactIngestionError, ContactService, DuplicateContact

router = APIRouter(prefix="/contacts", tags=["contacts"])


def duplicate_response(result: DuplicateContact) -> JSONResponse:
    body = DuplicateContactResponse(existing=ContactRead.model_validate(result.existing, from_attributes=True))
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump(mode="json"))


def batch_limit_error(exc: BatchLimitError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=[{"loc": ["body", exc.field_name], "msg": str(exc), "type": "value_error"}],
    )


@router.post(
    "",
    response_model=ContactRead,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": DuplicateContactResponse}},
)
def create_contact(
    payload: ContactInput,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    service = ContactService(session)
    result = service.create_contact(current_user.id, payload)
    if isinstance(result, DuplicateContact):
        return duplicate_response(result)
    return ContactRead.model_validate(result.contact, from_attributes=True)


@router.post("/batch", response_model=ContactBatchResult, status_code=status.HTTP_201_CREATED)
def create_contacts_batch(
    payload: ContactBatchCreate,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ContactBatchResult:
    service = ContactService(session)
    try:
        result = service.create_batch(current_user.id, payload.contacts)
    except BatchLimitError as exc:
        raise batch_limit_error(exc) from exc
    except ContactIngestionError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    return ContactBatchResult(
        created=[ContactRead.model_validate(contact, from_attributes=True) for contact in result.created],
        duplicates=[
            DuplicateEntry(input=item.input, existing=ContactRead.model_validate(item.existing, from_attributes=True))
            for item in result.duplicates
        ],
        errors=[ErrorEntry(input=item.input, message=item.message) for item in result.errors],
    )


@router.patch("/batch", response_model=list[ContactRead])
def update_contacts_batch(
    payload: ContactBatchUpdate,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[ContactRead]:
    service = ContactService(session)
    try:
        contacts = service.update_batch(current_user.id, payload.ids, payload.updates)
    except BatchLimitError as exc:
        raise batch_limit_error(exc) from exc
    except ContactIngestionError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return [ContactRead.model_validate(contact, from_attributes=True) for contact in contacts]


@router.delete("/batch", status_code=status.HTTP_204_NO_CONTENT)
def delete_contacts_batch(
    payload: ContactBatchDelete,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    service = ContactService(session)
    try:
        service.delete_batch(current_user.id, payload.ids)
    except BatchLimitError as exc:
        raise batch_limit_error(exc) from exc
    except ContactIngestionError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
