"""expense_fields

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

Adds vendor, payee, invoice number and receipt URL for admin-recorded expenses.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("transactions") as batch:
        batch.add_column(sa.Column("vendor", sa.String(200), nullable=True))
        batch.add_column(sa.Column("payee", sa.String(200), nullable=True))
        batch.add_column(sa.Column("invoice_number", sa.String(100), nullable=True))
        batch.add_column(sa.Column("receipt_url", sa.String(1000), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("transactions") as batch:
        batch.drop_column("receipt_url")
        batch.drop_column("invoice_number")
        batch.drop_column("payee")
        batch.drop_column("vendor")
