"""Identity probe."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.schemas import IdentityResponse, QuotaResponse
from app.core.dependencies import get_lenient_owner, get_quota_enforcer
from app.domain.identity import AnonymousDevice, AuthenticatedUser, Owner
from app.services.quota import QuotaEnforcer

router = APIRouter(prefix="/identity", tags=["identity"])


@router.get("", response_model=IdentityResponse)
async def who_am_i(
    owner: Annotated[Owner, Depends(get_lenient_owner)],
    quota: Annotated[QuotaEnforcer, Depends(get_quota_enforcer)],
) -> IdentityResponse:
    """Report how the server sees the caller.

    An invalid token is reported as ``none`` here instead of failing, so a
    client can detect a stale session and fall back to its device id.
    """
    if isinstance(owner, AuthenticatedUser):
        return IdentityResponse(kind=owner.kind, user_id=owner.user_id)
    if isinstance(owner, AnonymousDevice):
        status = await quota.status(owner)
        return IdentityResponse(
            kind=owner.kind,
            device_id=owner.device_id,
            quota=QuotaResponse.model_validate(status),
        )
    return IdentityResponse(kind=owner.kind)
