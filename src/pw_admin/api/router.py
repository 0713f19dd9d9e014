# src/pw_admin/api/router.py
"""Admin REST API."""
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from src.pw_common.response import ApiResponse, success_response
from src.pw_gateway.auth.dependencies import get_container, get_identity
from src.pw_gateway.auth.identity import Identity
from src.wiring import Container

router = APIRouter(prefix="/admin", tags=["admin"])


class FinalizeRequest(BaseModel):
    # None settles on the creator's declaration
    outcome: Literal["YES", "NO"] | None = None


@router.post("/markets/{market_id}/finalize")
async def finalize_market(
    market_id: int,
    body: FinalizeRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    result = await container.admin.finalize_market(identity, market_id, body.outcome)
    return success_response(result, request)


@router.get("/markets/disputed")
async def list_disputed(
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    result = await container.admin.list_disputed(identity)
    return success_response(result, request)


@router.get("/invariants")
async def verify_invariants(
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    result = await container.admin.verify_conservation(identity)
    return success_response(result, request)
