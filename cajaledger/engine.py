# Overview: Facade over the ledger, register and reporting services.

from __future__ import annotations

from typing import Callable

from .config import Config
from .gateway import PersistenceGateway
from .services.inventory_service import StockLedger
from .services.permission_service import Actor
from .services.products_service import ProductCatalog
from .services.register_service import RegisterManager
from .services.reporting_service import ReportingService
from .services.user_service import UserDirectory
from .time_utils import local_now


class CajaEngine:
    """
    The engine's external boundary.

    Built around one injected PersistenceGateway. Every call takes the
    authenticated Actor supplied by the caller's auth layer.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        clock: Callable = local_now,
        low_stock_threshold: int = Config.LOW_STOCK_THRESHOLD,
        history_limit: int = Config.MOVEMENT_HISTORY_LIMIT,
        analytics_window_days: int = Config.ANALYTICS_WINDOW_DAYS,
    ):
        self.gateway = gateway
        self.users = UserDirectory(gateway)
        self.products = ProductCatalog(gateway, low_stock_threshold=low_stock_threshold)
        self.ledger = StockLedger(gateway, history_limit=history_limit)
        self.registers = RegisterManager(gateway, clock=clock)
        self.reports = ReportingService(
            gateway,
            clock=clock,
            low_stock_threshold=low_stock_threshold,
            window_days=analytics_window_days,
        )

    # -- stock ledger -------------------------------------------------------

    def create_product(self, actor: Actor, code, name, **attributes):
        return self.products.create_product(actor, code=code, name=name, **attributes)

    def list_products(self, actor: Actor, **filters):
        return self.products.list_products(actor, **filters)

    def record_movement(self, actor: Actor, product_id: int, movement_type, quantity, note=None):
        return self.ledger.record_movement(actor, product_id, movement_type, quantity, note)

    def list_movements(self, actor: Actor, limit=None, **filters):
        return self.ledger.list_recent_movements(actor, limit, **filters)

    def verify_stock(self):
        return self.ledger.verify_stock()

    # -- cash registers -----------------------------------------------------

    def open_or_update_register(
        self,
        actor: Actor,
        fields: dict | None = None,
        *,
        record_id: int | None = None,
        owner_id: int | None = None,
        closing: bool = False,
    ):
        return self.registers.open_or_update(
            actor, fields, record_id=record_id, owner_id=owner_id, closing=closing
        )

    def list_registers(self, actor: Actor, *, date=None, owner_id=None, open_only: bool = False):
        return self.registers.list_registers(actor, date=date, owner_id=owner_id, open_only=open_only)

    # -- reporting ----------------------------------------------------------

    def get_dashboard_summary(self, actor: Actor, day=None) -> dict:
        return self.reports.dashboard_summary(actor, day)

    def register_analytics(self, actor: Actor, **options) -> dict:
        return self.reports.register_analytics(actor, **options)
