from __future__ import annotations

from ltcfund.extensions import db

from .donation import COMPLETED_STATUSES, Donation
from .donation_pledge import DonationPledge
from .matching_donation_log import MatchingDonationLog
from .mixins import DonorMixin, TimestampMixin
from .token import Token

__all__ = [
    "db",
    "Donation",
    "DonationPledge",
    "MatchingDonationLog",
    "Token",
    "TimestampMixin",
    "DonorMixin",
    "COMPLETED_STATUSES",
]
