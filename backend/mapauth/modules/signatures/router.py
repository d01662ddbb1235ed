"""
API Router for map instance signatures.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mapauth.core.errors import MapAuthError
from mapauth.core.http import to_http_exception
from mapauth.core.redis_pool import get_redis_pool
from mapauth.modules.signatures.schemas import (
    AuthorizationResponse,
    SignatureCreateRequest,
    SignatureCreateResponse,
)
from mapauth.modules.signatures.service import SignatureStore

router = APIRouter()


def get_signature_store() -> SignatureStore:
    return SignatureStore(get_redis_pool())


SignatureStoreDep = Annotated[SignatureStore, Depends(get_signature_store)]


@router.post(
    "/{signer}/{map_id}",
    response_model=SignatureCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_signature(
    signer: str,
    map_id: str,
    body: SignatureCreateRequest,
    store: SignatureStoreDep,
) -> SignatureCreateResponse:
    """Grant holders of the certificate access to the map instance."""
    try:
        crt_id = await store.add_signature(signer, map_id, body.certificate)
    except MapAuthError as exc:
        raise to_http_exception(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SignatureCreateResponse(certificate_id=crt_id)


@router.get("/{signer}/{map_id}/authorized", response_model=AuthorizationResponse)
async def check_authorization(
    signer: str,
    map_id: str,
    store: SignatureStoreDep,
    auth_token: str | None = Query(default=None),
) -> AuthorizationResponse:
    """Tell whether ``auth_token`` grants access to the map instance."""
    try:
        authorized = await store.is_authorized(signer, map_id, auth_token)
    except MapAuthError as exc:
        raise to_http_exception(exc) from exc
    return AuthorizationResponse(authorized=authorized)


@router.delete("/certificates/{certificate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_signature(certificate_id: str, store: SignatureStoreDep) -> None:
    try:
        await store.del_signature(certificate_id)
    except MapAuthError as exc:
        raise to_http_exception(exc) from exc
