# Overview: Product catalogue operations; creation, lookup and low-stock queries.

from __future__ import annotations

import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..exceptions import DuplicateError, NotFoundError
from ..gateway import PersistenceGateway
from ..models import MovementType, Product
from ..validation import clean_text, parse_price_cents, parse_quantity, require_text
from .inventory_service import apply_movement
from .permission_service import Actor, require_permission
from .user_service import require_user

logger = logging.getLogger(__name__)

DEFAULT_UNIT = "unidad"
DEFAULT_LOW_STOCK_THRESHOLD = 5
OPENING_STOCK_NOTE = "Opening stock"


def _parse_initial_stock(value) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    return parse_quantity(value, "stock", allow_zero=True)


class ProductCatalog:
    def __init__(self, gateway: PersistenceGateway, *, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD):
        self.gateway = gateway
        self.low_stock_threshold = low_stock_threshold

    def create_product(
        self,
        actor: Actor,
        *,
        code: str,
        name: str,
        description: str | None = None,
        price=None,
        stock=None,
        unit: str | None = None,
        category: str | None = None,
        supplier: str | None = None,
    ) -> Product:
        """
        Create a product. ADMIN/MANAGER only.

        A non-zero initial stock is booked as an opening ENTRY movement by the
        creating user in the same transaction, so the product's history
        replays to its stock from the first moment it exists.

        Raises:
            ForbiddenError: role lacks MANAGE_PRODUCTS
            InvalidArgumentError: missing code/name, bad price or stock
            DuplicateError: code already used by another product
        """
        require_permission(actor, "MANAGE_PRODUCTS")
        code = require_text(code, "code", max_length=64)
        name = require_text(name, "name", max_length=255)
        price_cents = parse_price_cents(price)
        initial_stock = _parse_initial_stock(stock)

        with self.gateway.transaction() as session:
            if session.query(Product.id).filter(Product.code == code).first():
                raise DuplicateError(f"A product with code '{code}' already exists")
            require_user(session, actor.user_id)

            product = Product(
                code=code,
                name=name,
                description=clean_text(description),
                price_cents=price_cents,
                unit=clean_text(unit, max_length=32) or DEFAULT_UNIT,
                category=clean_text(category, max_length=128),
                supplier=clean_text(supplier, max_length=255),
                stock=0,
            )
            session.add(product)
            try:
                session.flush()
            except IntegrityError as exc:
                # Lost a race with a concurrent create of the same code
                raise DuplicateError(f"A product with code '{code}' already exists") from exc

            if initial_stock > 0:
                apply_movement(
                    session,
                    product,
                    MovementType.ENTRY,
                    initial_stock,
                    actor_id=actor.user_id,
                    note=OPENING_STOCK_NOTE,
                )

        logger.info("Product %s created: code=%s stock=%s", product.id, product.code, product.stock)
        return product

    def get_product(self, product_id: int) -> Product:
        with self.gateway.transaction() as session:
            product = session.get(Product, product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            return product

    def list_products(
        self,
        actor: Actor,
        *,
        category: str | None = None,
        search: str | None = None,
    ) -> list[Product]:
        """All products ordered by name, optionally filtered."""
        require_permission(actor, "VIEW_PRODUCTS")
        with self.gateway.transaction() as session:
            query = session.query(Product)
            category = clean_text(category)
            if category:
                query = query.filter(Product.category == category)
            search = clean_text(search)
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(Product.name.ilike(pattern), Product.code.ilike(pattern)))
            return query.order_by(Product.name.asc(), Product.id.asc()).all()

    def low_stock_products(self, threshold: int | None = None) -> list[Product]:
        """Products at or below the threshold, lowest stock first."""
        threshold = self.low_stock_threshold if threshold is None else threshold
        with self.gateway.transaction() as session:
            return session.query(Product).filter(
                Product.stock <= threshold
            ).order_by(Product.stock.asc(), Product.name.asc()).all()
