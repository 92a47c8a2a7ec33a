"""create storage_entries

Revision ID: a1f3c5e7b9d2
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "a1f3c5e7b9d2"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)

    # One row per serialized entity collection (blueprints, contracts)
    if not insp.has_table("storage_entries"):
        op.create_table(
            "storage_entries",
            sa.Column("key", sa.String(length=128), primary_key=True, nullable=False),
            sa.Column("value", sa.Text(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
        )


def downgrade() -> None:
    op.drop_table("storage_entries")
