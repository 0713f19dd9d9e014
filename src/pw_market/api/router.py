"""pw_market REST API: market lifecycle and wager placement."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.pw_common.enums import MarketStatus
from src.pw_common.response import ApiResponse, success_response
from src.pw_gateway.auth.dependencies import get_container, get_identity
from src.pw_gateway.auth.identity import Identity
from src.pw_market.application.schemas import (
    CreateMarketRequest,
    DeclareOutcomeRequest,
    MarketDetail,
)
from src.pw_wager.application.schemas import PlaceWagerRequest, WagerResponse
from src.wiring import Container

router = APIRouter(prefix="/markets", tags=["markets"])


@router.post("")
async def create_market(
    body: CreateMarketRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    market = await container.markets.create_market(
        identity.account_id, body.question, body.deadline
    )
    data = await container.markets.get_market(market.id)
    return success_response(data.model_dump(), request)


@router.get("")
async def list_markets(
    container: Annotated[Container, Depends(get_container)],
    request: Request,
    status: MarketStatus | None = Query(None, description="Filter by status; omit for all"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await container.markets.list_markets(status, cursor, limit)
    return success_response(data.model_dump(), request)


@router.get("/{market_id}")
async def get_market(
    market_id: int,
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    data = await container.markets.get_market(market_id)
    return success_response(data.model_dump(), request)


@router.post("/{market_id}/wagers")
async def place_wager(
    market_id: int,
    body: PlaceWagerRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    wager = await container.wagers.place_wager(
        identity.account_id, market_id, body.outcome, body.amount
    )
    return success_response(WagerResponse.from_domain(wager).model_dump(), request)


@router.post("/{market_id}/resolve")
async def declare_outcome(
    market_id: int,
    body: DeclareOutcomeRequest,
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    market = await container.markets.declare_outcome(
        market_id, identity.account_id, body.outcome
    )
    pools = await container.markets.pool_totals(market_id)
    return success_response(MarketDetail.from_domain(market, pools).model_dump(), request)


@router.post("/{market_id}/dispute")
async def raise_dispute(
    market_id: int,
    identity: Annotated[Identity, Depends(get_identity)],
    container: Annotated[Container, Depends(get_container)],
    request: Request,
) -> ApiResponse:
    market = await container.markets.raise_dispute(market_id, identity.account_id)
    pools = await container.markets.pool_totals(market_id)
    return success_response(MarketDetail.from_domain(market, pools).model_dump(), request)
