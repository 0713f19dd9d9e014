"""005: create ledger_entries table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            account_id      BIGINT          NOT NULL REFERENCES accounts (id),
            amount          BIGINT          NOT NULL,
            source          VARCHAR(20)     NOT NULL,
            balance_after   BIGINT          NOT NULL,
            description     VARCHAR(500),
            reference_type  VARCHAR(20),
            reference_id    VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_source CHECK (
                source IN ('WELCOME', 'WAGER_PLACED', 'WIN_PAYOUT', 'REFUND', 'BAILOUT')
            ),
            CONSTRAINT ck_ledger_amount_ne_0 CHECK (amount <> 0),
            CONSTRAINT ck_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_ledger_append_only
            BEFORE UPDATE OR DELETE ON ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_modification();
    """)
    op.execute("CREATE INDEX idx_ledger_account ON ledger_entries (account_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_ledger_reference
        ON ledger_entries (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("CREATE INDEX idx_ledger_source ON ledger_entries (account_id, source, created_at);")
    op.execute(
        "COMMENT ON TABLE ledger_entries IS "
        "'Append-only audit trail; every balance change has exactly one entry';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
