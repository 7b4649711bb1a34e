"""SQLAlchemy metadata definitions for credential tables."""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()

credentials = sa.Table(
    "credentials",
    metadata,
    sa.Column("identity", sa.Text(), primary_key=True, nullable=False),
    sa.Column("password_hash", sa.Text(), nullable=True),
    sa.Column("hash_algorithm", sa.Text(), nullable=False),
    sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
    sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    ),
)
