"""donation schema

Revision ID: 3f1c9a7b2d10
Revises:
Create Date: 2026-01-14 18:22:05.413210
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f1c9a7b2d10"
down_revision = None
branch_labels = None
depends_on = None


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _donor_columns():
    return [
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tax_receipt", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("join_mailing_list", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("social_x", sa.String(length=120), nullable=True),
        sa.Column("social_facebook", sa.String(length=255), nullable=True),
        sa.Column("social_linkedin", sa.String(length=255), nullable=True),
    ]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade():
    # --- donations (legacy-compatible) ---
    op.create_table(
        "donations",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("project_slug", sa.String(length=160), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=True),
        sa.Column("donation_type", sa.String(length=20), nullable=False),
        sa.Column("asset_symbol", sa.String(length=40), nullable=True),
        sa.Column("asset_description", sa.String(length=255), nullable=True),
        sa.Column("pledge_amount", sa.Numeric(20, 8), nullable=True),
        sa.Column("donor_email", sa.String(length=255), nullable=True),
        sa.Column("pledge_id", sa.String(length=120), nullable=True),
        sa.Column("donation_uuid", sa.String(length=120), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=True),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(length=60), nullable=True),
        sa.Column("value_at_donation_time_usd", sa.Numeric(20, 2), nullable=True),
        sa.Column("signature_date", sa.DateTime(), nullable=True),
        *_donor_columns(),
        *_timestamps(),
        sa.CheckConstraint("pledge_amount >= 0", name="ck_donations_pledge_amount_nonneg"),
    )
    with op.batch_alter_table("donations") as batch_op:
        batch_op.create_index(batch_op.f("ix_donations_project_slug"), ["project_slug"], unique=False)
        batch_op.create_index(batch_op.f("ix_donations_donation_type"), ["donation_type"], unique=False)
        batch_op.create_index(batch_op.f("ix_donations_donor_email"), ["donor_email"], unique=False)
        batch_op.create_index(batch_op.f("ix_donations_pledge_id"), ["pledge_id"], unique=True)
        batch_op.create_index(batch_op.f("ix_donations_donation_uuid"), ["donation_uuid"], unique=True)
        batch_op.create_index(batch_op.f("ix_donations_created_at"), ["created_at"], unique=False)
        batch_op.create_index("ix_donations_project_status", ["project_slug", "status"], unique=False)

    # --- donation_pledges (new schema) ---
    op.create_table(
        "donation_pledges",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("project_slug", sa.String(length=160), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=True),
        sa.Column("donation_type", sa.String(length=20), nullable=False),
        sa.Column("pledge_currency", sa.String(length=20), nullable=False),
        sa.Column("pledge_amount", sa.Numeric(20, 8), nullable=False),
        sa.Column("receipt_email", sa.String(length=255), nullable=True),
        sa.Column("pledge_id", sa.String(length=120), nullable=True),
        sa.Column("deposit_address", sa.String(length=255), nullable=True),
        *_donor_columns(),
        *_timestamps(),
    )
    with op.batch_alter_table("donation_pledges") as batch_op:
        batch_op.create_index(batch_op.f("ix_donation_pledges_project_slug"), ["project_slug"], unique=False)
        batch_op.create_index(batch_op.f("ix_donation_pledges_donation_type"), ["donation_type"], unique=False)
        batch_op.create_index(batch_op.f("ix_donation_pledges_pledge_id"), ["pledge_id"], unique=True)
        batch_op.create_index(batch_op.f("ix_donation_pledges_created_at"), ["created_at"], unique=False)

    # --- matching_donation_logs (legacy, read-only) ---
    op.create_table(
        "matching_donation_logs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("project_slug", sa.String(length=160), nullable=True),
        sa.Column("donation_id", sa.Integer(), nullable=True),
        sa.Column("matched_amount", sa.Numeric(20, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["donation_id"], ["donations.id"], ondelete="SET NULL"),
    )
    with op.batch_alter_table("matching_donation_logs") as batch_op:
        batch_op.create_index(batch_op.f("ix_matching_donation_logs_project_slug"), ["project_slug"], unique=False)
        batch_op.create_index(batch_op.f("ix_matching_donation_logs_donation_id"), ["donation_id"], unique=False)

    # --- tokens (single row) ---
    op.create_table(
        "tokens",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("refresh_token", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("refreshed_at", sa.DateTime(), nullable=False),
    )


def downgrade():
    op.drop_table("tokens")

    with op.batch_alter_table("matching_donation_logs") as batch_op:
        batch_op.drop_index(batch_op.f("ix_matching_donation_logs_donation_id"))
        batch_op.drop_index(batch_op.f("ix_matching_donation_logs_project_slug"))
    op.drop_table("matching_donation_logs")

    with op.batch_alter_table("donation_pledges") as batch_op:
        batch_op.drop_index(batch_op.f("ix_donation_pledges_created_at"))
        batch_op.drop_index(batch_op.f("ix_donation_pledges_pledge_id"))
        batch_op.drop_index(batch_op.f("ix_donation_pledges_donation_type"))
        batch_op.drop_index(batch_op.f("ix_donation_pledges_project_slug"))
    op.drop_table("donation_pledges")

    with op.batch_alter_table("donations") as batch_op:
        batch_op.drop_index("ix_donations_project_status")
        batch_op.drop_index(batch_op.f("ix_donations_created_at"))
        batch_op.drop_index(batch_op.f("ix_donations_donation_uuid"))
        batch_op.drop_index(batch_op.f("ix_donations_pledge_id"))
        batch_op.drop_index(batch_op.f("ix_donations_donor_email"))
        batch_op.drop_index(batch_op.f("ix_donations_donation_type"))
        batch_op.drop_index(batch_op.f("ix_donations_project_slug"))
    op.drop_table("donations")
