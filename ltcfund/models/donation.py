from __future__ import annotations

# -----------------------------------------------------------------------------
# Donation Model
# Legacy-compatible donations table: fiat + stock pledges are recorded here
# before they are sent to The Giving Block, then tagged with the vendor id.
# Webhook-era columns (processed/status/value_at_donation_time_usd) are read
# by the stats endpoints.
# -----------------------------------------------------------------------------
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from ltcfund.extensions import db

from .mixins import DonorMixin, TimestampMixin

COMPLETED_STATUSES = ("Complete", "Advanced")


class Donation(db.Model, TimestampMixin, DonorMixin):
    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint("pledge_amount >= 0", name="ck_donations_pledge_amount_nonneg"),
        Index("ix_donations_project_status", "project_slug", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # ---- Target ----
    project_slug: Mapped[str] = mapped_column(db.String(160), nullable=False, index=True)
    organization_id: Mapped[Optional[int]] = mapped_column(db.Integer, nullable=True)

    # ---- Asset ----
    donation_type: Mapped[str] = mapped_column(
        db.String(20),
        nullable=False,
        default="fiat",
        index=True,
        doc="fiat / crypto / stock",
    )
    asset_symbol: Mapped[Optional[str]] = mapped_column(
        db.String(40),
        nullable=True,
        doc="Pledge currency (USD, LTC, ...) or stock ticker.",
    )
    asset_description: Mapped[Optional[str]] = mapped_column(db.String(255), nullable=True)
    pledge_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(20, 8),
        nullable=True,
        doc="Amount in asset units (dollars for fiat, shares for stock).",
    )

    donor_email: Mapped[Optional[str]] = mapped_column(db.String(255), nullable=True, index=True)

    # ---- Vendor identifiers ----
    pledge_id: Mapped[Optional[str]] = mapped_column(
        db.String(120),
        nullable=True,
        unique=True,
        index=True,
        doc="The Giving Block pledge id (fiat).",
    )
    donation_uuid: Mapped[Optional[str]] = mapped_column(
        db.String(120),
        nullable=True,
        unique=True,
        index=True,
        doc="The Giving Block donation uuid (stock).",
    )

    # ---- Processing state ----
    success: Mapped[Optional[bool]] = mapped_column(db.Boolean, nullable=True)
    processed: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=False)
    status: Mapped[Optional[str]] = mapped_column(db.String(60), nullable=True)
    value_at_donation_time_usd: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(20, 2),
        nullable=True,
        doc="USD value when the donation settled (set by the processor).",
    )
    signature_date: Mapped[Optional[datetime]] = mapped_column(
        db.DateTime,
        nullable=True,
        doc="When the donor signed the stock transfer form.",
    )

    # ==========================================================
    # Computed Properties
    # ==========================================================
    @property
    def usd_value(self) -> Decimal:
        if self.value_at_donation_time_usd:
            return Decimal(self.value_at_donation_time_usd)
        if self.pledge_amount is not None:
            return Decimal(self.pledge_amount)
        return Decimal("0")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Donation {self.id} {self.donation_type} {self.project_slug} {self.pledge_amount}>"
