# Overview: Read-only aggregation over products and register records.

from __future__ import annotations

from collections import OrderedDict
from typing import Callable

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from ..models import CashRegisterRecord, Product
from ..time_utils import day_bounds, days_ago, local_now
from ..validation import parse_day
from .permission_service import Actor, require_permission
from .register_service import reconcile

DEFAULT_WINDOW_DAYS = 30
DAILY_SALES_POINTS = 7


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part * 100.0 / whole, 2)


class ReportingService:
    """Pure derivations; nothing here writes."""

    def __init__(
        self,
        gateway,
        *,
        clock: Callable = local_now,
        low_stock_threshold: int = 5,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        self.gateway = gateway
        self.clock = clock
        self.low_stock_threshold = low_stock_threshold
        self.window_days = window_days

    def dashboard_summary(self, actor: Actor, day=None) -> dict:
        """
        Totals for one business day (today by default).

        Sales totals include every register of the day regardless of whether
        it is closed.
        """
        require_permission(actor, "VIEW_DASHBOARD")
        business_day = parse_day(day) or self.clock().date()
        start, end = day_bounds(business_day)

        with self.gateway.transaction() as session:
            total_products = session.query(func.count(Product.id)).scalar() or 0
            low_stock = session.query(func.count(Product.id)).filter(
                Product.stock <= self.low_stock_threshold
            ).scalar() or 0
            inventory_value = session.query(
                func.coalesce(func.sum(Product.price_cents * Product.stock), 0)
            ).scalar()

            row = session.query(
                func.count(CashRegisterRecord.id).label("registers"),
                func.coalesce(func.sum(CashRegisterRecord.cash_sales_cents), 0).label("cash"),
                func.coalesce(func.sum(CashRegisterRecord.card_sales_cents), 0).label("card"),
                func.coalesce(func.sum(CashRegisterRecord.transfer_sales_cents), 0).label("transfer"),
            ).filter(
                CashRegisterRecord.date >= start,
                CashRegisterRecord.date <= end,
            ).one()

            open_registers = session.query(func.count(CashRegisterRecord.id)).filter(
                CashRegisterRecord.date >= start,
                CashRegisterRecord.date <= end,
                CashRegisterRecord.closed.is_(False),
            ).scalar() or 0

        cash, card, transfer = int(row.cash or 0), int(row.card or 0), int(row.transfer or 0)
        return {
            "date": business_day.isoformat(),
            "total_products": int(total_products),
            "low_stock_threshold": self.low_stock_threshold,
            "low_stock_products": int(low_stock),
            "inventory_value_cents": int(inventory_value or 0),
            "registers": int(row.registers or 0),
            "open_registers": int(open_registers),
            "has_open_register": open_registers > 0,
            "cash_sales_cents": cash,
            "card_sales_cents": card,
            "transfer_sales_cents": transfer,
            "total_sales_cents": cash + card + transfer,
        }

    def register_analytics(self, actor: Actor, *, days: int | None = None, owner_id: int | None = None) -> dict:
        """Closed-register history over the last ``days`` business days."""
        require_permission(actor, "VIEW_REGISTER_ANALYTICS")
        days = self.window_days if days is None else days
        since = days_ago(self.clock(), days)

        with self.gateway.transaction() as session:
            query = session.query(CashRegisterRecord).options(
                joinedload(CashRegisterRecord.owner)
            ).filter(
                CashRegisterRecord.closed.is_(True),
                CashRegisterRecord.date >= since,
            )
            if owner_id is not None:
                query = query.filter(CashRegisterRecord.owner_id == owner_id)
            records = query.order_by(CashRegisterRecord.date.asc(), CashRegisterRecord.id.asc()).all()

        by_method = {"cash": 0, "card": 0, "transfer": 0}
        by_user: dict[int, dict] = {}
        by_day: "OrderedDict[str, int]" = OrderedDict()
        total_expenses = 0
        total_abs_difference = 0
        flagged = 0

        for record in records:
            by_method["cash"] += record.cash_sales_cents
            by_method["card"] += record.card_sales_cents
            by_method["transfer"] += record.transfer_sales_cents
            total_expenses += record.expenses_cents

            result = reconcile(record)
            total_abs_difference += abs(result.difference_cents or 0)
            if result.flagged:
                flagged += 1

            user_row = by_user.setdefault(record.owner_id, {
                "user_id": record.owner_id,
                "name": record.owner.name if record.owner else None,
                "total_sales_cents": 0,
            })
            user_row["total_sales_cents"] += record.total_sales_cents

            day_key = record.date.date().isoformat()
            by_day[day_key] = by_day.get(day_key, 0) + record.total_sales_cents

        total_sales = sum(by_method.values())
        count = len(records)
        return {
            "since": since.date().isoformat(),
            "register_count": count,
            "total_sales_cents": total_sales,
            "total_expenses_cents": total_expenses,
            "average_sales_cents": round(total_sales / count) if count else 0,
            "total_abs_difference_cents": total_abs_difference,
            "flagged_count": flagged,
            "flagged_percentage": _percentage(flagged, count),
            "sales_by_method": by_method,
            "sales_by_user": sorted(by_user.values(), key=lambda r: (-r["total_sales_cents"], r["user_id"])),
            "daily_sales": [
                {"date": day, "total_sales_cents": total}
                for day, total in list(by_day.items())[-DAILY_SALES_POINTS:]
            ],
        }
