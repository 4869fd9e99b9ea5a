"""
Cash Register Service

WHY: Each cashier opens a register record for the day, reports sales per
payment method and expenses while it is open, and closes it with a counted
cash figure. Closing reconciles counted cash against expected cash.

DESIGN PRINCIPLES:
- Records are OPEN (closed=False) or CLOSED (closed=True); CLOSED is terminal
- Owners (and admins) edit open records; only admins edit closed records
- Closing requires closing cash and cash sales, validated before any write
- Check and write share one transaction against a row read FOR UPDATE
- Card and transfer sales never enter the cash reconciliation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy.orm import joinedload

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..gateway import PersistenceGateway
from ..models import CashRegisterRecord
from ..time_utils import day_bounds, local_now, utcnow
from ..validation import clean_text, coerce_amount_cents, parse_amount_cents, parse_day, parse_flag
from .concurrency import get_for_update
from .permission_service import Actor, require_permission, require_register_access, user_has_permission
from .user_service import require_user

logger = logging.getLogger(__name__)

# Request field -> column. Requests carry currency units; columns store cents.
AMOUNT_FIELDS = {
    "opening_cash": "opening_cash_cents",
    "closing_cash": "closing_cash_cents",
    "cash_sales": "cash_sales_cents",
    "card_sales": "card_sales_cents",
    "transfer_sales": "transfer_sales_cents",
    "expenses": "expenses_cents",
}

CLOSE_REQUIRED_FIELDS = ("closing_cash", "cash_sales")

# Differences beyond one cent (0.01) are flagged
TOLERANCE_CENTS = 1


# =============================================================================
# RECONCILIATION
# =============================================================================

@dataclass(frozen=True)
class Reconciliation:
    expected_cash_cents: int
    difference_cents: int | None
    flagged: bool

    def to_dict(self) -> dict:
        return {
            "expected_cash_cents": self.expected_cash_cents,
            "difference_cents": self.difference_cents,
            "flagged": self.flagged,
        }


def reconcile_amounts(
    *,
    opening_cash_cents: int,
    cash_sales_cents: int,
    expenses_cents: int,
    closing_cash_cents: int | None,
) -> Reconciliation:
    """
    expected = opening + cash sales - expenses
    difference = closing - expected (positive: excess, negative: shortage)
    """
    expected = (opening_cash_cents or 0) + (cash_sales_cents or 0) - (expenses_cents or 0)
    if closing_cash_cents is None:
        return Reconciliation(expected_cash_cents=expected, difference_cents=None, flagged=False)
    difference = closing_cash_cents - expected
    return Reconciliation(
        expected_cash_cents=expected,
        difference_cents=difference,
        flagged=abs(difference) > TOLERANCE_CENTS,
    )


def reconcile(record: CashRegisterRecord) -> Reconciliation:
    """Pure reconciliation of an open or closed record."""
    return reconcile_amounts(
        opening_cash_cents=record.opening_cash_cents,
        cash_sales_cents=record.cash_sales_cents,
        expenses_cents=record.expenses_cents,
        closing_cash_cents=record.closing_cash_cents,
    )


def _store_reconciliation(record: CashRegisterRecord) -> Reconciliation:
    result = reconcile(record)
    record.expected_cash_cents = result.expected_cash_cents
    record.difference_cents = result.difference_cents
    record.flagged = result.flagged
    return result


def require_close_fields(fields: dict) -> None:
    """Closing needs numeric closing cash and cash sales in the request itself."""
    missing = [name for name in CLOSE_REQUIRED_FIELDS if parse_amount_cents(fields.get(name)) is None]
    if missing:
        raise ValidationError(
            f"Missing required fields to close register: {', '.join(missing)}",
            missing_fields=missing,
        )


# =============================================================================
# REGISTER MANAGER
# =============================================================================

class RegisterManager:
    """Open/update/close lifecycle for CashRegisterRecord."""

    def __init__(self, gateway: PersistenceGateway, *, clock: Callable = local_now):
        self.gateway = gateway
        self.clock = clock

    # -- mutations ----------------------------------------------------------

    def open(self, actor: Actor, fields: dict | None = None, *, owner_id: int | None = None) -> CashRegisterRecord:
        """Open a new record. Same as open_or_update() without a record id."""
        return self.open_or_update(actor, fields, owner_id=owner_id)

    def update(self, record_id: int, fields: dict, actor: Actor) -> CashRegisterRecord:
        return self.open_or_update(actor, fields, record_id=record_id)

    def close(self, record_id: int, fields: dict, actor: Actor) -> CashRegisterRecord:
        return self.open_or_update(actor, fields, record_id=record_id, closing=True)

    def open_or_update(
        self,
        actor: Actor,
        fields: dict | None = None,
        *,
        record_id: int | None = None,
        owner_id: int | None = None,
        closing: bool = False,
    ) -> CashRegisterRecord:
        """
        Create a record (no record_id) or update one, optionally closing it.

        Raises:
            ValidationError: closing without numeric closing_cash and cash_sales
            InvalidArgumentError: ``closed`` is not a recognisable boolean
            NotFoundError: record_id (or owner) does not exist
            ForbiddenError: actor is neither owner nor admin
            ConflictError: record is closed and actor is not admin, or a
                request tries to reopen a closed record
        """
        fields = dict(fields or {})
        closed_flag = parse_flag(fields.get("closed"), "closed")
        if closed_flag:
            closing = True
        if closing:
            require_close_fields(fields)

        with self.gateway.transaction() as session:
            if record_id is None:
                record = self._create(session, actor, fields, owner_id)
            else:
                record = self._load_for_write(session, record_id, actor)
                if closed_flag is False and record.closed:
                    raise ConflictError("Closed register records cannot be reopened")
                self._merge(record, fields)

            newly_closed = closing and not record.closed
            if newly_closed:
                record.closed = True
                record.closed_at = utcnow()
                record.closed_by_id = actor.user_id

            result = _store_reconciliation(record)
            session.flush()

        if newly_closed:
            if result.flagged:
                logger.warning(
                    "Register %s closed with difference %s cents (expected %s)",
                    record.id, result.difference_cents, result.expected_cash_cents,
                )
            else:
                logger.info("Register %s closed and reconciled", record.id)
        return record

    def _create(self, session, actor: Actor, fields: dict, owner_id: int | None) -> CashRegisterRecord:
        owner_id = actor.user_id if owner_id is None else owner_id
        require_register_access(actor, owner_id)
        require_user(session, owner_id)

        # Creation: unparsable amounts are zero, closing cash stays unset
        record = CashRegisterRecord(
            owner_id=owner_id,
            date=self.clock(),
            opening_cash_cents=coerce_amount_cents(fields.get("opening_cash"), 0),
            closing_cash_cents=parse_amount_cents(fields.get("closing_cash")),
            cash_sales_cents=coerce_amount_cents(fields.get("cash_sales"), 0),
            card_sales_cents=coerce_amount_cents(fields.get("card_sales"), 0),
            transfer_sales_cents=coerce_amount_cents(fields.get("transfer_sales"), 0),
            expenses_cents=coerce_amount_cents(fields.get("expenses"), 0),
            notes=clean_text(fields.get("notes")) or "",
            closed=False,
        )
        session.add(record)
        session.flush()
        logger.info("Register %s opened for user %s", record.id, owner_id)
        return record

    def _load_for_write(self, session, record_id: int, actor: Actor) -> CashRegisterRecord:
        record = get_for_update(session, CashRegisterRecord, record_id)
        if record is None:
            raise NotFoundError(f"Register record {record_id} not found")
        require_register_access(actor, record.owner_id)
        if record.closed and not user_has_permission(actor, "MANAGE_ALL_REGISTERS"):
            raise ConflictError("Register record is closed and can no longer be modified")
        return record

    @staticmethod
    def _merge(record: CashRegisterRecord, fields: dict) -> None:
        # Update: omitted or unparsable amounts keep the previous value
        for field, column in AMOUNT_FIELDS.items():
            if field in fields:
                setattr(record, column, coerce_amount_cents(fields[field], getattr(record, column)))
        if "notes" in fields:
            record.notes = clean_text(fields["notes"]) or ""

    # -- queries ------------------------------------------------------------

    def get_record(self, record_id: int, actor: Actor) -> CashRegisterRecord:
        with self.gateway.transaction() as session:
            record = session.query(CashRegisterRecord).options(
                joinedload(CashRegisterRecord.owner)
            ).filter(CashRegisterRecord.id == record_id).first()
            if record is None:
                raise NotFoundError(f"Register record {record_id} not found")
            require_register_access(actor, record.owner_id)
            return record

    def list_registers(
        self,
        actor: Actor,
        *,
        date=None,
        owner_id: int | None = None,
        open_only: bool = False,
    ) -> list[CashRegisterRecord]:
        """
        Newest-first register listing.

        Non-admins only ever see their own records; owner_id is honoured for
        admins only. ``date`` selects one local business day.
        """
        require_permission(actor, "OPERATE_OWN_REGISTER")
        day = parse_day(date)

        with self.gateway.transaction() as session:
            query = session.query(CashRegisterRecord).options(joinedload(CashRegisterRecord.owner))

            if not user_has_permission(actor, "MANAGE_ALL_REGISTERS"):
                query = query.filter(CashRegisterRecord.owner_id == actor.user_id)
            elif owner_id is not None:
                query = query.filter(CashRegisterRecord.owner_id == owner_id)

            if day is not None:
                start, end = day_bounds(day)
                query = query.filter(CashRegisterRecord.date >= start, CashRegisterRecord.date <= end)

            if open_only:
                query = query.filter(CashRegisterRecord.closed.is_(False))

            return query.order_by(
                CashRegisterRecord.date.desc(),
                CashRegisterRecord.id.desc(),
            ).all()

    def current_open_record(self, actor: Actor) -> CashRegisterRecord | None:
        """The actor's most recent open record dated today, if any."""
        require_permission(actor, "OPERATE_OWN_REGISTER")
        start, end = day_bounds(self.clock())
        with self.gateway.transaction() as session:
            return session.query(CashRegisterRecord).filter(
                CashRegisterRecord.owner_id == actor.user_id,
                CashRegisterRecord.closed.is_(False),
                CashRegisterRecord.date >= start,
                CashRegisterRecord.date <= end,
            ).order_by(CashRegisterRecord.date.desc(), CashRegisterRecord.id.desc()).first()
