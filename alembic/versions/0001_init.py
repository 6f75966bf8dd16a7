"""Migração inicial: itens de cardápio e chave-valor do perfil."""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "menuitems",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("image", sa.String(500), nullable=False, server_default=""),
        sa.Column("category", sa.String(64), nullable=False),
        sa.CheckConstraint("length(category) > 0", name="ck_menuitems_category_not_empty"),
    )
    op.create_index("ix_menuitems_category", "menuitems", ["category"])
    op.create_table(
        "kv_entries",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=False),
    )

def downgrade() -> None:
    op.drop_table("kv_entries")
    op.drop_index("ix_menuitems_category", table_name="menuitems")
    op.drop_table("menuitems")
