"""pw_account REST API: the caller's account, wagers, ledger, and the leaderboard."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.pw_common.enums import LedgerSource
from src.pw_common.response import ApiResponse, success_response
from src.pw_gateway.auth.dependencies import get_container, get_identity
from src.pw_gateway.auth.identity import Identity
from src.wiring import Container

router = APIRouter(tags=["account"])


@router.get("/me")
async def get_me(
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    account = await container.accounts.get_account(identity.account_id)
    stats = await container.wagers.account_stats(identity.account_id)
    data = {**account.model_dump(), "is_admin": identity.is_admin, "stats": stats.model_dump()}
    return success_response(data, request)


@router.get("/me/wagers")
async def list_my_wagers(
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await container.wagers.wager_history(identity.account_id, cursor, limit)
    return success_response(data.model_dump(), request)


@router.get("/me/ledger")
async def list_my_ledger(
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    source: LedgerSource | None = Query(None, description="Filter by ledger source"),
) -> ApiResponse:
    data = await container.accounts.list_ledger(identity.account_id, cursor, limit, source)
    return success_response(data.model_dump(), request)


@router.post("/me/bailout")
async def bailout(
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    data = await container.accounts.bailout(identity.account_id)
    return success_response(data.model_dump(), request)


@router.get("/leaderboard")
async def leaderboard(
    container: Annotated[Container, Depends(get_container)],
    request: Request,
    limit: int = Query(50, ge=1, le=100),
) -> ApiResponse:
    items = await container.accounts.leaderboard(limit)
    return success_response([i.model_dump() for i in items], request)
