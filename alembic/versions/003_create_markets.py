"""003: create markets table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id              BIGSERIAL       PRIMARY KEY,
            creator_id      BIGINT          NOT NULL REFERENCES accounts (id),
            question        VARCHAR(140)    NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'ACTIVE',
            outcome         VARCHAR(3),
            resolved_at     TIMESTAMPTZ,
            deadline        TIMESTAMPTZ     NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_status CHECK (
                status IN ('ACTIVE', 'LOCKED', 'RESOLVED', 'DISPUTED', 'FINALIZED')
            ),
            CONSTRAINT ck_markets_outcome CHECK (outcome IS NULL OR outcome IN ('YES', 'NO')),
            CONSTRAINT ck_markets_outcome_iff_resolved CHECK (
                (status IN ('RESOLVED', 'DISPUTED', 'FINALIZED'))
                = (outcome IS NOT NULL AND resolved_at IS NOT NULL)
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    # Scheduler scans
    op.execute("CREATE INDEX idx_markets_active_deadline ON markets (deadline) WHERE status = 'ACTIVE';")
    op.execute(
        "CREATE INDEX idx_markets_resolved_at ON markets (resolved_at) WHERE status = 'RESOLVED';"
    )
    op.execute("CREATE INDEX idx_markets_status ON markets (status, id DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
