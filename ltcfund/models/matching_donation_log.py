from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Numeric
from sqlalchemy.orm import Mapped, mapped_column

from ltcfund.extensions import db


class MatchingDonationLog(db.Model):
    """Matched-donation ledger carried over from the legacy schema (read-only here)."""

    __tablename__ = "matching_donation_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_slug: Mapped[Optional[str]] = mapped_column(db.String(160), nullable=True, index=True)
    donation_id: Mapped[Optional[int]] = mapped_column(
        db.ForeignKey("donations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    matched_amount: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(db.DateTime, default=datetime.utcnow, nullable=False)
