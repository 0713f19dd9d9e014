"""004: create wagers table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wagers (
            id              BIGSERIAL       PRIMARY KEY,
            account_id      BIGINT          NOT NULL REFERENCES accounts (id),
            market_id       BIGINT          NOT NULL REFERENCES markets (id),
            outcome         VARCHAR(3)      NOT NULL,
            amount          BIGINT          NOT NULL,
            placed_at       TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wagers_outcome CHECK (outcome IN ('YES', 'NO')),
            CONSTRAINT ck_wagers_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_wagers_append_only
            BEFORE UPDATE OR DELETE ON wagers
            FOR EACH ROW EXECUTE FUNCTION fn_reject_modification();
    """)
    op.execute("CREATE INDEX idx_wagers_market ON wagers (market_id, outcome);")
    op.execute("CREATE INDEX idx_wagers_account ON wagers (account_id, id DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wagers CASCADE;")
