from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Numeric
from sqlalchemy.orm import Mapped, mapped_column

from ltcfund.extensions import db

from .mixins import DonorMixin, TimestampMixin


class DonationPledge(db.Model, TimestampMixin, DonorMixin):
    """Pledge record of the newer schema; crypto deposit addresses land here."""

    __tablename__ = "donation_pledges"

    id: Mapped[int] = mapped_column(primary_key=True)

    project_slug: Mapped[str] = mapped_column(db.String(160), nullable=False, index=True)
    organization_id: Mapped[Optional[int]] = mapped_column(db.Integer, nullable=True)
    donation_type: Mapped[str] = mapped_column(db.String(20), nullable=False, default="crypto", index=True)

    pledge_currency: Mapped[str] = mapped_column(db.String(20), nullable=False)
    pledge_amount: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    receipt_email: Mapped[Optional[str]] = mapped_column(db.String(255), nullable=True)

    pledge_id: Mapped[Optional[str]] = mapped_column(db.String(120), nullable=True, unique=True, index=True)
    deposit_address: Mapped[Optional[str]] = mapped_column(db.String(255), nullable=True)

    @property
    def usd_value(self) -> Decimal:
        return Decimal(self.pledge_amount or 0)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<DonationPledge {self.pledge_id or self.id} {self.pledge_amount} {self.pledge_currency}>"
