# Overview: Catalog reads and the one stock mutation the sale workflow is allowed to make.

from __future__ import annotations

from sqlalchemy import update

from ..models import Product
from ..validation import MAX_SQL_INT, ConflictError, enforce_rules_product
from .concurrency import lock_for_update
from .errors import InsufficientStock, InvalidQuantity, ProductNotFound

LOW_STOCK_THRESHOLD = 10


def _is_storable_id(product_id) -> bool:
    return isinstance(product_id, int) and not isinstance(product_id, bool) and 1 <= product_id <= MAX_SQL_INT


def lookup_product(session, product_id: int, *, for_update: bool = False) -> Product:
    """
    Fetch a product by id or raise ProductNotFound.

    for_update=True locks the row and refreshes any copy already sitting in
    the session, so stock checks see the committed value.
    """
    if not _is_storable_id(product_id):
        raise ProductNotFound(product_id)

    query = session.query(Product).filter(Product.id == product_id)
    if for_update:
        query = lock_for_update(query).populate_existing()
    product = query.first()
    if product is None:
        raise ProductNotFound(product_id)
    return product


def decrement_stock(session, product_id: int, quantity: int) -> None:
    """
    Lower stock by ``quantity`` if and only if enough is on hand.

    The check and the write are one conditional UPDATE, so two callers can
    never both take the last units. Does not commit; copies of the product
    already loaded in the session keep their old stock until refreshed.
    """
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise InvalidQuantity(product_id, None, quantity)
    if not _is_storable_id(product_id):
        raise ProductNotFound(product_id)

    # No column can hold more than MAX_SQL_INT units
    if quantity <= MAX_SQL_INT:
        result = session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return

    product = session.query(Product).filter(Product.id == product_id).populate_existing().first()
    if product is None:
        raise ProductNotFound(product_id)
    raise InsufficientStock(product.id, product.name, quantity, product.stock_quantity)


def list_products(session) -> list[Product]:
    return session.query(Product).order_by(Product.name.asc()).all()


def low_stock_products(session, threshold: int = LOW_STOCK_THRESHOLD) -> list[Product]:
    """Products with fewer than ``threshold`` units left, scarcest first."""
    return (
        session.query(Product)
        .filter(Product.stock_quantity < threshold)
        .order_by(Product.stock_quantity.asc(), Product.name.asc())
        .all()
    )


def create_product(session, *, name: str, price_cents: int, stock_quantity: int = 0) -> Product:
    """Seed a catalog entry (used by the CLI and fixtures)."""
    name = (name or "").strip()
    patch = {"name": name, "price_cents": price_cents, "stock_quantity": stock_quantity}
    enforce_rules_product(patch)

    if session.query(Product).filter(Product.name == name).first() is not None:
        raise ConflictError(f"Product {name!r} already exists")

    product = Product(**patch)
    session.add(product)
    session.commit()
    return product
