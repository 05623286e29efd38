from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Mapped, mapped_column

from ltcfund.extensions import db

# The service account has exactly one token pair; it always lives in this row.
TOKEN_ROW_ID = 1


class Token(db.Model):
    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(primary_key=True)
    access_token: Mapped[str] = mapped_column(db.Text, nullable=False)
    refresh_token: Mapped[str] = mapped_column(db.Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(db.DateTime, nullable=False)
    refreshed_at: Mapped[datetime] = mapped_column(db.DateTime, nullable=False, default=datetime.utcnow)

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return now < self.expires_at

    @classmethod
    def latest(cls) -> Optional["Token"]:
        return db.session.execute(
            select(cls).order_by(cls.refreshed_at.desc()).limit(1)
        ).scalar_one_or_none()

    @classmethod
    def upsert(cls, access_token: str, refresh_token: str, expires_at: datetime) -> "Token":
        row = db.session.get(cls, TOKEN_ROW_ID)
        if row is None:
            row = cls(id=TOKEN_ROW_ID)
            db.session.add(row)
        row.access_token = access_token
        row.refresh_token = refresh_token
        row.expires_at = expires_at
        row.refreshed_at = datetime.utcnow()
        db.session.commit()
        return row

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Token expires_at={self.expires_at:%Y-%m-%d %H:%M}>"
