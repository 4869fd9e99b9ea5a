from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import relationship

from .base import Base
from ..time_utils import utcnow, to_utc_z, to_local_iso


class CashRegisterRecord(Base):
    """
    One cashier's cash-handling session for a business day.

    LIFECYCLE:
    - OPEN (closed=False): amounts may be edited by the owner or an admin
    - CLOSED (closed=True): immutable for everyone but admins; never reopened

    Sales figures are manually reported totals per payment method; they are
    not derived from product movements.

    expected_cash_cents / difference_cents / flagged hold the reconciliation
    computed at close time (and recomputed on admin overrides).
    """
    __tablename__ = "cash_register_records"
    __table_args__ = (
        sa.Index("ix_cash_register_records_owner_date", "owner_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = sa.Column(sa.Integer, primary_key=True)
    owner_id = sa.Column(sa.Integer, sa.ForeignKey("users.id"), nullable=False, index=True)

    # Business timestamp in local time; day-scoped queries filter on this
    date = sa.Column(sa.DateTime, nullable=False, index=True)

    # Cash tracking (all amounts in cents)
    opening_cash_cents = sa.Column(sa.Integer, nullable=False, default=0)
    closing_cash_cents = sa.Column(sa.Integer, nullable=True)  # Set when closing
    cash_sales_cents = sa.Column(sa.Integer, nullable=False, default=0)
    card_sales_cents = sa.Column(sa.Integer, nullable=False, default=0)
    transfer_sales_cents = sa.Column(sa.Integer, nullable=False, default=0)
    expenses_cents = sa.Column(sa.Integer, nullable=False, default=0)

    notes = sa.Column(sa.Text, nullable=False, default="")

    closed = sa.Column(sa.Boolean, nullable=False, default=False, index=True)
    closed_at = sa.Column(sa.DateTime, nullable=True)
    closed_by_id = sa.Column(sa.Integer, sa.ForeignKey("users.id"), nullable=True)

    # Reconciliation (calculated when closing)
    expected_cash_cents = sa.Column(sa.BigInteger, nullable=True)  # opening + cash sales - expenses
    difference_cents = sa.Column(sa.BigInteger, nullable=True)  # closing - expected
    flagged = sa.Column(sa.Boolean, nullable=False, default=False)

    version_id = sa.Column(sa.Integer, nullable=False, default=1)

    created_at = sa.Column(sa.DateTime, nullable=False, default=utcnow)
    updated_at = sa.Column(sa.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User", foreign_keys=[owner_id], backref="register_records")
    closed_by = relationship("User", foreign_keys=[closed_by_id])
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        state = "CLOSED" if self.closed else "OPEN"
        return f"<CashRegisterRecord id={self.id} owner_id={self.owner_id} {state}>"

    @property
    def status(self) -> str:
        return "CLOSED" if self.closed else "OPEN"

    @property
    def total_sales_cents(self) -> int:
        return (self.cash_sales_cents or 0) + (self.card_sales_cents or 0) + (self.transfer_sales_cents or 0)

    def to_dict(self, include_owner: bool = False) -> dict:
        data = {
            "id": self.id,
            "owner_id": self.owner_id,
            "date": to_local_iso(self.date),
            "status": self.status,
            "opening_cash_cents": self.opening_cash_cents,
            "closing_cash_cents": self.closing_cash_cents,
            "cash_sales_cents": self.cash_sales_cents,
            "card_sales_cents": self.card_sales_cents,
            "transfer_sales_cents": self.transfer_sales_cents,
            "expenses_cents": self.expenses_cents,
            "total_sales_cents": self.total_sales_cents,
            "notes": self.notes,
            "closed": self.closed,
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
            "closed_by_id": self.closed_by_id,
            "expected_cash_cents": self.expected_cash_cents,
            "difference_cents": self.difference_cents,
            "flagged": self.flagged,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_owner:
            data["owner_name"] = self.owner.name if self.owner else None
        return data
