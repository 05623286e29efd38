# ltcfund/models/mixins.py
"""Shared SQLAlchemy mixins."""

from datetime import datetime

from sqlalchemy import event

from ltcfund.extensions import db


class TimestampMixin:
    """Adds created_at and updated_at columns with auto-refresh behavior."""

    created_at = db.Column(
        db.DateTime, default=datetime.utcnow, nullable=False, index=True
    )
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    @staticmethod
    def _set_updated_at(mapper, connection, target):
        target.updated_at = datetime.utcnow()

    @classmethod
    def __declare_last__(cls):
        event.listen(cls, "before_update", cls._set_updated_at)


class DonorMixin:
    """Donor identity + preference columns shared by donations and pledges."""

    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    is_anonymous = db.Column(db.Boolean, nullable=False, default=False)
    tax_receipt = db.Column(db.Boolean, nullable=False, default=False)
    join_mailing_list = db.Column(db.Boolean, nullable=False, default=False)
    social_x = db.Column(db.String(120), nullable=True)
    social_facebook = db.Column(db.String(255), nullable=True)
    social_linkedin = db.Column(db.String(255), nullable=True)

    @property
    def donor_name(self) -> str:
        if self.is_anonymous:
            return "Anonymous"
        parts = [p for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts) if parts else "Anonymous"
