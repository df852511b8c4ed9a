import logging
from typing import Dict

from fastapi import HTTPException
from sqlmodel import Session, select

from app.models.order_item import OrderItem
from app.models.product import Product

logger = logging.getLogger(__name__)


def reduce_stock(session: Session, quantities: Dict[int, int]):
    """Take ``{product_id: qty}`` out of stock. Caller commits."""
    for product_id, qty in quantities.items():
        product = session.get(Product, product_id)
        if not product:
            raise HTTPException(404, f"Product {product_id} not found")

        if product.count_in_stock < qty:
            raise HTTPException(
                400,
                f"Insufficient stock for {product.name}. "
                f"Available: {product.count_in_stock}, Requested: {qty}",
            )

        product.count_in_stock -= qty
        session.add(product)


def restock_order_items(session: Session, order_id: int) -> int:
    """Put a cancelled order's items back on the shelf. Caller commits."""
    order_items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order_id)
    ).all()

    for item in order_items:
        product = session.get(Product, item.product_id)
        if product:
            product.count_in_stock += item.qty
            session.add(product)

    logger.info(f"Restocked {len(order_items)} items for order {order_id}")
    return len(order_items)
