# mypy: ignore-errors
"""
Migration Alembic pour créer la table tenant_directives.

Cette migration crée la table tenant_directives, source de vérité des directives système
par tenant (version de production, variante expérimentale et paramètres d'expérience).
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée la table tenant_directives."""
    op.create_table(
        "tenant_directives",
        sa.Column("tenant_id", sa.String(length=64), primary_key=True),
        sa.Column("organization_name", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="ACTIVE"),
        sa.Column("system_prompt", sa.Text(), nullable=False),
        sa.Column("directive_version", sa.String(length=64), nullable=True),
        sa.Column("author_identifier", sa.String(length=128), nullable=True),
        sa.Column("model_tier", sa.String(length=32), nullable=True),
        sa.Column("vocal_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("experimental_prompt", sa.Text(), nullable=True),
        sa.Column("experimental_version", sa.String(length=64), nullable=True),
        sa.Column("experiment_name", sa.String(length=128), nullable=True),
        sa.Column(
            "experiment_traffic_split", sa.Float(), nullable=False, server_default="0.5"
        ),
        sa.Column(
            "experiment_active", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    """Supprime la table tenant_directives."""
    op.drop_table("tenant_directives")
