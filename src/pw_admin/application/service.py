# src/pw_admin/application/service.py
"""Admin application service.

Administrators settle DISPUTED markets (confirming or overriding the
creator's declaration) and audit ledger conservation.
"""
import logging
from typing import Any

from src.pw_account.domain.repository import AccountRepositoryProtocol
from src.pw_account.infrastructure.persistence import AccountRepository
from src.pw_common.cents import parse_outcome
from src.pw_common.database import LedgerStore
from src.pw_common.enums import Outcome
from src.pw_common.errors import ForbiddenError
from src.pw_gateway.auth.identity import Identity
from src.pw_market.application.service import MarketService
from src.pw_settlement.application.service import SettlementService
from src.pw_settlement.domain.payout import Declared, OutcomeSource, Overridden

logger = logging.getLogger(__name__)


def _require_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise ForbiddenError("administrator privilege required")


class AdminService:
    def __init__(
        self,
        store: LedgerStore,
        markets: MarketService,
        settlement: SettlementService,
        accounts: AccountRepositoryProtocol | None = None,
    ) -> None:
        self._store = store
        self._markets = markets
        self._settlement = settlement
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()

    async def finalize_market(
        self, identity: Identity, market_id: int, outcome: Outcome | str | None = None
    ) -> dict[str, Any]:
        """None accepts the creator's declaration; anything else overrides it."""
        _require_admin(identity)
        source: OutcomeSource = (
            Declared() if outcome is None else Overridden(parse_outcome(outcome))
        )
        credited = await self._settlement.finalize(market_id, source)
        logger.warning(
            "admin finalize market_id=%s admin=%s override=%s credited=%d",
            market_id, identity.external_id,
            source.outcome.value if isinstance(source, Overridden) else None,
            credited,
        )
        return {"market_id": market_id, "payouts_processed": credited}

    async def list_disputed(self, identity: Identity) -> list[dict[str, Any]]:
        _require_admin(identity)
        markets = await self._markets.list_disputed()
        return [
            {
                "id": m.id,
                "creator_id": m.creator_id,
                "question": m.question,
                "declared_outcome": m.outcome.value if m.outcome else None,
                "resolved_at": m.resolved_at.isoformat() if m.resolved_at else None,
            }
            for m in markets
        ]

    async def verify_conservation(self, identity: Identity) -> dict[str, Any]:
        """Accounts whose balance differs from the sum of their ledger entries."""
        _require_admin(identity)
        async with self._store.session() as db:
            violations = await self._accounts.find_conservation_violations(db)
        if violations:
            logger.error("ledger conservation violated accounts=%d", len(violations))
        return {
            "ok": not violations,
            "violations": [
                {
                    "account_id": v.account_id,
                    "balance": v.balance,
                    "ledger_sum": v.ledger_sum,
                }
                for v in violations
            ],
        }
