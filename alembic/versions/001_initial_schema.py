"""Initial schema - 7 tables + indexes.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = [
    "instagram_accounts", "shop_installations", "post_meta", "analytics_daily",
    "analytics_posts", "feed_settings", "widgets",
]


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # --- ENUM types ---
    widget_status = sa.Enum("draft", "active", name="widget_status")

    # --- 1. instagram_accounts ---
    op.create_table(
        "instagram_accounts",
        _id(),
        sa.Column("shop", sa.String(255), unique=True, nullable=False),
        sa.Column("access_token", sa.Text, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("username", sa.String(255), nullable=False, server_default="Instagram User"),
        sa.Column("profile_picture_url", sa.Text, nullable=True),
        sa.Column("token_degraded", sa.Boolean, server_default=sa.text("false")),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # --- 2. shop_installations ---
    op.create_table(
        "shop_installations",
        _id(),
        sa.Column("shop", sa.String(255), unique=True, nullable=False),
        sa.Column("access_token", sa.Text, nullable=False),
        sa.Column("scope", sa.Text, nullable=False, server_default=""),
        *_timestamps(),
    )

    # --- 3. post_meta ---
    op.create_table(
        "post_meta",
        _id(),
        sa.Column("shop", sa.String(255), nullable=False),
        sa.Column("media_id", sa.String(64), nullable=False),
        sa.Column("is_pinned", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_hidden", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("products", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        *_timestamps(),
        sa.UniqueConstraint("shop", "media_id", name="uq_post_meta_shop_media"),
    )

    # --- 4. analytics_daily ---
    op.create_table(
        "analytics_daily",
        _id(),
        sa.Column("shop", sa.String(255), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("views", sa.Integer, nullable=False, server_default="0"),
        sa.Column("clicks", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("shop", "date", name="uq_analytics_daily_shop_date"),
    )

    # --- 5. analytics_posts ---
    op.create_table(
        "analytics_posts",
        _id(),
        sa.Column("shop", sa.String(255), nullable=False),
        sa.Column("media_id", sa.String(64), nullable=False),
        sa.Column("media_url", sa.Text, nullable=True),
        sa.Column("permalink", sa.Text, nullable=True),
        sa.Column("views", sa.Integer, nullable=False, server_default="0"),
        sa.Column("clicks", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("shop", "media_id", name="uq_analytics_posts_shop_media"),
    )

    # --- 6. feed_settings ---
    op.create_table(
        "feed_settings",
        _id(),
        sa.Column("shop", sa.String(255), unique=True, nullable=False),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("config", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        *_timestamps(),
    )

    # --- 7. widgets ---
    op.create_table(
        "widgets",
        _id(),
        sa.Column("shop", sa.String(255), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("status", widget_status, nullable=False, server_default="draft"),
        sa.Column("configuration", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        *_timestamps(),
    )

    # --- Indexes ---
    op.create_index("idx_post_meta_shop", "post_meta", ["shop"])
    op.create_index("idx_analytics_daily_shop", "analytics_daily", ["shop"])
    op.create_index("idx_analytics_posts_shop", "analytics_posts", ["shop"])
    op.create_index("idx_analytics_posts_clicks", "analytics_posts", ["shop", "clicks"])
    op.create_index("idx_widgets_shop", "widgets", ["shop"])

    # updated_at auto-update trigger
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    for table in TABLES:
        op.execute(f"""
            CREATE TRIGGER trigger_update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    for table in TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS trigger_update_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    for table in reversed(TABLES):
        op.drop_table(table)

    op.execute("DROP TYPE IF EXISTS widget_status")
