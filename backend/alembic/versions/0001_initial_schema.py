"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for the clubhouse backend: identity (principals,
auth_sessions, password_reset_requests, auth_notices), profiles, events,
event_rsvps, posts, post_likes, comments, audit_logs, transactions,
links and partners.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

profile_role = sa.Enum("member", "admin", name="profilerole")
profile_status = sa.Enum("pending", "approved", "rejected", name="profilestatus")
event_status = sa.Enum("upcoming", "ongoing", "completed", "cancelled", name="eventstatus")
event_category = sa.Enum("tournament", "training", "social", "workshop", name="eventcategory")
rsvp_status = sa.Enum("going", "interested", name="rsvpstatus")
post_privacy = sa.Enum("public", "members", "friends", name="postprivacy")
transaction_type = sa.Enum("income", "expense", name="transactiontype")
payment_method = sa.Enum("paypal", "zelle", "venmo", "check", "cash", name="paymentmethod")
transaction_status = sa.Enum("pending", "completed", "refunded", "cancelled", name="transactionstatus")
income_purpose = sa.Enum("membership", "donation", "event_fee", "sponsor", name="incomepurpose")
partner_tier = sa.Enum("platinum", "gold", "silver", "bronze", "community", name="partnertier")
partner_type = sa.Enum("corporate", "nonprofit", "individual", "media", name="partnertype")


def upgrade() -> None:
    # --- identity ---
    op.create_table(
        "principals",
        sa.Column("principal_id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("claims", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "auth_sessions",
        sa.Column("token", sa.String(64), primary_key=True),
        sa.Column(
            "principal_id", sa.String(36),
            sa.ForeignKey("principals.principal_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_auth_sessions_principal_id", "auth_sessions", ["principal_id"])
    op.create_table(
        "password_reset_requests",
        sa.Column("token", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "auth_notices",
        sa.Column("client_id", sa.String(64), primary_key=True),
        sa.Column("message", sa.String(500), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- profiles ---
    op.create_table(
        "profiles",
        sa.Column("principal_id", sa.String(36), primary_key=True),
        sa.Column("role", profile_role, nullable=False, server_default="member"),
        sa.Column("status", profile_status, nullable=False, server_default="pending"),
        sa.Column("suspended", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("country_code", sa.String(8), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=True),
        sa.Column("avatar_url", sa.String(1000), nullable=True),
        sa.Column("bio", sa.String(500), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("goals", sa.String(1000), nullable=True),
        sa.Column("sports_interests", sa.JSON, nullable=True),
        sa.Column("join_as", sa.String(50), nullable=True),
        sa.Column("events", sa.JSON, nullable=False),
        sa.Column("posts_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("likes_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("events_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("connections_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("requested_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(500), nullable=False, server_default=""),
        sa.Column("description", sa.String(4000), nullable=True),
        sa.Column("category", event_category, nullable=False, server_default="training"),
        sa.Column("banner_image", sa.String(1000), nullable=True),
        sa.Column("status", event_status, nullable=False, server_default="upcoming"),
        sa.Column("max_participants", sa.Integer, nullable=True),
        sa.Column("registration_count", sa.Integer, nullable=True, server_default="0"),
        sa.Column("registered_users", sa.JSON, nullable=False),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "event_rsvps",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("principal_id", sa.String(36), primary_key=True),
        sa.Column("status", rsvp_status, nullable=False, server_default="going"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_event_rsvps_principal_id", "event_rsvps", ["principal_id"])

    # --- feed ---
    op.create_table(
        "posts",
        sa.Column("post_id", sa.String(36), primary_key=True),
        sa.Column("author_id", sa.String(36), nullable=False),
        sa.Column("author_name", sa.String(200), nullable=True),
        sa.Column("title", sa.String(60), nullable=False, server_default="Post"),
        sa.Column("body", sa.String(5000), nullable=False),
        sa.Column("image_url", sa.String(1000), nullable=True),
        sa.Column("privacy", post_privacy, nullable=False, server_default="public"),
        sa.Column("likes_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("comment_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_posts_author_id", "posts", ["author_id"])
    op.create_table(
        "post_likes",
        sa.Column("post_id", sa.String(36), primary_key=True),
        sa.Column("principal_id", sa.String(36), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "comments",
        sa.Column("comment_id", sa.String(36), primary_key=True),
        sa.Column("post_id", sa.String(36), nullable=False),
        sa.Column("parent_comment_id", sa.String(36), nullable=True),
        sa.Column("author_id", sa.String(36), nullable=False),
        sa.Column("author_name", sa.String(200), nullable=True),
        sa.Column("author_avatar", sa.String(1000), nullable=True),
        sa.Column("body", sa.String(2000), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_comments_post_id", "comments", ["post_id"])

    # --- audit_logs ---
    op.create_table(
        "audit_logs",
        sa.Column("entry_id", sa.String(36), primary_key=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("performed_by", sa.String(36), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=True),
        sa.Column("changes", sa.JSON, nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_target_id", "audit_logs", ["target_id"])

    # --- transactions ---
    op.create_table(
        "transactions",
        sa.Column("transaction_id", sa.String(36), primary_key=True),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("subcategory", sa.String(100), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("method", payment_method, nullable=False),
        sa.Column("status", transaction_status, nullable=False, server_default="pending"),
        sa.Column("description", sa.String(1000), nullable=False),
        sa.Column("payer_id", sa.String(36), nullable=True),
        sa.Column("payer_name", sa.String(200), nullable=True),
        sa.Column("purpose", income_purpose, nullable=True),
        sa.Column("notes", sa.String(2000), nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("fiscal_year", sa.Integer, nullable=False),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("approved_by", sa.String(36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_transactions_fiscal_year", "transactions", ["fiscal_year"])

    # --- reference data ---
    op.create_table(
        "links",
        sa.Column("link_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "partners",
        sa.Column("partner_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.String(2000), nullable=False, server_default=""),
        sa.Column("logo_url", sa.String(1000), nullable=True),
        sa.Column("website_url", sa.String(1000), nullable=True),
        sa.Column("tier", partner_tier, nullable=False, server_default="community"),
        sa.Column("type", partner_type, nullable=False, server_default="corporate"),
        sa.Column("featured", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    for table in (
        "partners", "links", "transactions", "audit_logs", "comments", "post_likes",
        "posts", "event_rsvps", "events", "profiles", "auth_notices",
        "password_reset_requests", "auth_sessions", "principals",
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_type in (
        partner_type, partner_tier, income_purpose, transaction_status, payment_method,
        transaction_type, post_privacy, rsvp_status, event_category, event_status,
        profile_status, profile_role,
    ):
        enum_type.drop(bind, checkfirst=True)
