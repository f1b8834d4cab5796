from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session

from contacthub.api.deps import get_current_active_user, get_db
from contacthub.models.api_key import ApiKey
from contacthub.models.user import User
from contacthub.schemas.api_key import ApiKeyCreate, ApiKeyCreatedResponse, ApiKeyRead, ApiKeyWithSecret
from contacthub.services.api_key import ApiKeyLimitError, ApiKeyNotFoundError, ApiKeyService

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


def _with_secret(api_key: ApiKey, plaintext: str) -> ApiKeyWithSecret:
    read = ApiKeyRead.model_validate(api_key, from_attributes=True)
    return ApiKeyWithSecret(**read.model_dump(exclude={"masked_key"}), key=plaintext)


@router.get("", response_model=list[ApiKeyRead])
def list_api_keys(
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[ApiKeyRead]:
    keys = ApiKeyService(session).list_active(current_user.id)
    return [ApiKeyRead.model_validate(key, from_attributes=True) for key in keys]


@router.post("", response_model=ApiKeyCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_api_key(
    payload: ApiKeyCreate,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ApiKeyCreatedResponse:
    try:
        api_key, plaintext = ApiKeyService(session).create(current_user.id, payload.name)
    except ApiKeyLimitError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"loc": ["body", "limit"], "msg": str(exc), "type": "value_error"}],
        ) from exc
    return ApiKeyCreatedResponse(
        data=_with_secret(api_key, plaintext),
        message="API key created. Save this key now - it won't be shown again.",
    )


@router.post("/{key_id}/regenerate", response_model=ApiKeyCreatedResponse, status_code=status.HTTP_201_CREATED)
def regenerate_api_key(
    key_id: UUID,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ApiKeyCreatedResponse:
    try:
        api_key, plaintext = ApiKeyService(session).regenerate(current_user.id, key_id)
    except ApiKeyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ApiKeyCreatedResponse(
        data=_with_secret(api_key, plaintext),
        message="API key regenerated. The old key is now invalid.",
    )


@router.delete("/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_api_key(
    key_id: UUID,
    session: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    try:
        ApiKeyService(session).revoke(current_user.id, key_id)
    except ApiKeyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
