from __future__ import annotations

import enum

import sqlalchemy as sa
from sqlalchemy.orm import relationship

from .base import Base
from ..time_utils import utcnow, to_utc_z


class MovementType(str, enum.Enum):
    """
    Closed set of stock movement kinds.

    ENTRY and EXIT carry a positive delta; ADJUST carries the absolute
    target quantity, not a delta.
    """
    ENTRY = "ENTRY"
    EXIT = "EXIT"
    ADJUST = "ADJUST"

    @classmethod
    def parse(cls, value) -> "MovementType":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValueError(f"unknown movement type: {value!r}")

    def apply(self, current: int, quantity: int) -> int:
        """Stock after applying this movement. Does not validate EXIT bounds."""
        if self is MovementType.ENTRY:
            return current + quantity
        if self is MovementType.EXIT:
            return current - quantity
        return quantity


class Product(Base):
    """
    Product master data.

    STOCK DESIGN DECISION:
    Product.stock is the authoritative current quantity, but it is only ever
    written together with a StockMovement in the same transaction. Replaying
    a product's movements from zero reproduces this column exactly.

    CODE: the external-facing SKU, unique across all products.
    """
    __tablename__ = "products"
    __table_args__ = (
        sa.UniqueConstraint("code"),
        sa.Index("ix_products_name", "name"),
        sa.CheckConstraint("price_cents >= 0", name="price_non_negative"),
        sa.CheckConstraint("stock >= 0", name="stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = sa.Column(sa.Integer, primary_key=True)

    code = sa.Column(sa.String(64), nullable=False)
    name = sa.Column(sa.String(255), nullable=False)
    description = sa.Column(sa.Text, nullable=True)

    # Authoritative storage in cents
    price_cents = sa.Column(sa.Integer, nullable=False, default=0)
    unit = sa.Column(sa.String(32), nullable=False, default="unidad")
    category = sa.Column(sa.String(128), nullable=True, index=True)
    supplier = sa.Column(sa.String(255), nullable=True)

    stock = sa.Column(sa.Integer, nullable=False, default=0)

    version_id = sa.Column(sa.Integer, nullable=False, default=1)

    created_at = sa.Column(sa.DateTime, nullable=False, default=utcnow)
    updated_at = sa.Column(sa.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} name={self.name!r} stock={self.stock}>"

    @property
    def inventory_value_cents(self) -> int:
        return (self.price_cents or 0) * (self.stock or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "unit": self.unit,
            "category": self.category,
            "supplier": self.supplier,
            "stock": self.stock,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(Base):
    """
    Append-only stock ledger entry.

    IMMUTABLE: there is no update or delete path. previous_stock/new_stock
    snapshot the product's stock around this movement.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        sa.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        sa.CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        sa.CheckConstraint("type IN ('ENTRY', 'EXIT', 'ADJUST')", name="type_known"),
        {"sqlite_autoincrement": True},
    )

    id = sa.Column(sa.Integer, primary_key=True)
    product_id = sa.Column(sa.Integer, sa.ForeignKey("products.id"), nullable=False, index=True)
    actor_id = sa.Column(sa.Integer, sa.ForeignKey("users.id"), nullable=False, index=True)

    type = sa.Column(sa.String(16), nullable=False, index=True)
    quantity = sa.Column(sa.Integer, nullable=False)

    previous_stock = sa.Column(sa.Integer, nullable=False)
    new_stock = sa.Column(sa.Integer, nullable=False)

    note = sa.Column(sa.String(255), nullable=True)

    created_at = sa.Column(sa.DateTime, nullable=False, default=utcnow, index=True)

    product = relationship("Product", backref="movements")
    actor = relationship("User")

    @property
    def movement_type(self) -> MovementType:
        return MovementType(self.type)

    def to_dict(self, include_refs: bool = False) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "actor_id": self.actor_id,
            "type": self.type,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
        if include_refs:
            data["product_name"] = self.product.name if self.product else None
            data["product_code"] = self.product.code if self.product else None
            data["actor_name"] = self.actor.name if self.actor else None
        return data
