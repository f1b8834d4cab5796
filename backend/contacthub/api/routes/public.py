from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from contacthub.api.deps import get_api_key, get_db
from contacthub.api.routes.contacts import duplicate_response
from contacthub.models.api_key import ApiKey
from contacthub.schemas.contact import ContactRead, DuplicateContactResponse, PublicContactInput, PublicContactResponse
from contacthub.services.api_key import ApiKeyService
from contacthub.services.contact import ContactService, DuplicateContact

router = APIRouter(prefix="/public", tags=["public"])


@router.post(
    "/contacts",
    response_model=PublicContactResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"model": DuplicateContactResponse}},
)
def submit_contact(
    payload: PublicContactInput,
    session: Session = Depends(get_db),
    api_key: ApiKey = Depends(get_api_key),
):
    result = ContactService(session).submit_public(api_key.user_id, payload)
    if isinstance(result, DuplicateContact):
        return duplicate_response(result)

    ApiKeyService(session).touch(api_key)
    return PublicContactResponse(data=ContactRead.model_validate(result.contact, from_attributes=True))
