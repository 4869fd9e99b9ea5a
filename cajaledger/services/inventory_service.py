# Overview: Stock ledger; pairs every stock change with exactly one movement row.

"""
Stock Ledger Invariants (authoritative)

- Product.stock changes only through apply_movement(), which writes the new
  stock and appends the StockMovement in the caller's transaction.
- ENTRY adds, EXIT subtracts (never below zero, no partial fulfilment),
  ADJUST sets an absolute, non-negative target.
- Replaying a product's movements in creation order from zero reproduces
  Product.stock exactly.
- Movements are append-only: there is no update or delete path.
- The precondition check (current stock) and the write happen in the same
  transaction, against a row read FOR UPDATE. Product.version_id turns any
  concurrent overwrite into a StaleDataError (StorageError to callers).
"""

from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy.orm import joinedload

from ..exceptions import InsufficientStockError, InvalidArgumentError, NotFoundError
from ..gateway import PersistenceGateway
from ..models import MovementType, Product, StockMovement
from ..time_utils import utcnow
from ..validation import MAX_QUANTITY, clean_text, parse_quantity
from .concurrency import get_for_update
from .permission_service import Actor, require_permission
from .user_service import require_user

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


def parse_movement_type(value) -> MovementType:
    try:
        return MovementType.parse(value)
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid movement type {value!r}; expected one of ENTRY, EXIT, ADJUST"
        )


def parse_movement_quantity(movement_type: MovementType, quantity) -> int:
    # ADJUST carries an absolute target, so zero is a legal value there
    return parse_quantity(quantity, allow_zero=movement_type is MovementType.ADJUST)


def apply_movement(
    session,
    product: Product,
    movement_type: MovementType,
    quantity: int,
    *,
    actor_id: int,
    note: str | None = None,
    now: Callable = utcnow,
) -> StockMovement:
    """
    Core movement logic without transaction handling.

    Caller owns the transaction and must have loaded ``product`` under a row
    lock in that same transaction.
    """
    current = product.stock or 0
    if movement_type is MovementType.EXIT and current < quantity:
        raise InsufficientStockError(product.id, available=current, requested=quantity)

    new_stock = movement_type.apply(current, quantity)
    if new_stock > MAX_QUANTITY:
        raise InvalidArgumentError(f"Stock for product {product.id} cannot exceed {MAX_QUANTITY}")
    timestamp = now()

    product.stock = new_stock
    product.updated_at = timestamp

    movement = StockMovement(
        product_id=product.id,
        actor_id=actor_id,
        type=movement_type.value,
        quantity=quantity,
        previous_stock=current,
        new_stock=new_stock,
        note=note,
        created_at=timestamp,
    )
    session.add(movement)
    session.flush()
    return movement


def replay_movements(movements) -> int:
    """Fold movements (oldest first) from zero using the ledger effect rules."""
    stock = 0
    for movement in movements:
        stock = MovementType(movement.type).apply(stock, movement.quantity)
    return stock


class StockLedger:
    """Records stock movements and answers ledger queries."""

    def __init__(self, gateway: PersistenceGateway, *, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.gateway = gateway
        self.history_limit = history_limit

    def record_movement(
        self,
        actor: Actor,
        product_id: int,
        movement_type,
        quantity,
        note: str | None = None,
    ) -> tuple[Product, StockMovement]:
        """
        Apply one ENTRY/EXIT/ADJUST movement atomically.

        Any authenticated role may record any movement type.

        Raises:
            InvalidArgumentError: unknown type or bad quantity
            NotFoundError: product (or actor) does not exist
            InsufficientStockError: EXIT larger than current stock
        """
        require_permission(actor, "RECORD_MOVEMENT")
        movement_type = parse_movement_type(movement_type)
        quantity = parse_movement_quantity(movement_type, quantity)
        note = clean_text(note, max_length=255)

        try:
            with self.gateway.transaction() as session:
                product = get_for_update(session, Product, product_id)
                if product is None:
                    raise NotFoundError(f"Product {product_id} not found")
                require_user(session, actor.user_id)

                movement = apply_movement(
                    session,
                    product,
                    movement_type,
                    quantity,
                    actor_id=actor.user_id,
                    note=note,
                )
        except InsufficientStockError as exc:
            logger.info(
                "Rejected EXIT on product %s: available=%s requested=%s",
                exc.product_id, exc.available, exc.requested,
            )
            raise

        logger.info(
            "Stock movement %s recorded: product=%s type=%s qty=%s stock %s -> %s by user=%s",
            movement.id, product.id, movement.type, movement.quantity,
            movement.previous_stock, movement.new_stock, actor.user_id,
        )
        return product, movement

    def list_recent_movements(
        self,
        actor: Actor,
        limit: int | None = None,
        *,
        product_id: int | None = None,
        movement_type=None,
        actor_id: int | None = None,
    ) -> list[StockMovement]:
        """Newest-first ledger projection with product and actor loaded. Admin only."""
        require_permission(actor, "VIEW_LEDGER")
        limit = self.history_limit if limit is None else parse_quantity(limit, "limit")

        with self.gateway.transaction() as session:
            query = session.query(StockMovement).options(
                joinedload(StockMovement.product),
                joinedload(StockMovement.actor),
            )
            if product_id is not None:
                query = query.filter(StockMovement.product_id == product_id)
            if movement_type is not None:
                query = query.filter(StockMovement.type == parse_movement_type(movement_type).value)
            if actor_id is not None:
                query = query.filter(StockMovement.actor_id == actor_id)

            return query.order_by(
                StockMovement.created_at.desc(),
                StockMovement.id.desc(),
            ).limit(limit).all()

    def replay_stock(self, product_id: int) -> int:
        """Stock reconstructed from the product's full movement history."""
        with self.gateway.transaction() as session:
            if session.get(Product, product_id) is None:
                raise NotFoundError(f"Product {product_id} not found")
            movements = session.query(StockMovement).filter(
                StockMovement.product_id == product_id
            ).order_by(StockMovement.id.asc()).all()
            return replay_movements(movements)

    def verify_stock(self) -> list[dict]:
        """
        Compare every product's stored stock with its replayed history.

        Returns one row per mismatching product; an empty list means the
        ledger and the stock column agree everywhere.
        """
        mismatches = []
        with self.gateway.transaction() as session:
            movements_by_product: dict[int, list[StockMovement]] = {}
            for movement in session.query(StockMovement).order_by(StockMovement.id.asc()):
                movements_by_product.setdefault(movement.product_id, []).append(movement)

            for product in session.query(Product).order_by(Product.id.asc()):
                replayed = replay_movements(movements_by_product.get(product.id, []))
                if replayed != product.stock:
                    mismatches.append({
                        "product_id": product.id,
                        "code": product.code,
                        "stored_stock": product.stock,
                        "replayed_stock": replayed,
                    })

        if mismatches:
            logger.warning("Stock ledger mismatch on %d product(s)", len(mismatches))
        return mismatches
