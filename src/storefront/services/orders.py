"""
Checkout: turns a user's cart into an immutable, priced order.

    DRAFT (the cart) -> PRICED -> PLACED
    any failure                 -> REJECTED (nothing persisted)

Prices are always re-read from the catalog at checkout time. Writing the order
and emptying the cart happen in a single store transaction, under the same
per-user lock the cart manager uses.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from storefront.db import crud, models
from storefront.db.database import guarded
from storefront.errors import NotFoundError, ValidationError
from storefront.services.locks import UserLocks
from storefront.services.ports import OrderStore
from storefront.utils.logger import get_logger

_logger = get_logger(__name__)


class OrderEngine:
    def __init__(self, store: Optional[OrderStore] = None, locks: Optional[UserLocks] = None):
        self.store = store if store is not None else crud
        self.locks = locks if locks is not None else UserLocks()

    async def _price(self, cart: models.Cart) -> List[models.OrderLine]:
        lines = []
        for line_no, item in enumerate(cart.items, start=1):
            product = await guarded(self.store.get_product(item.product_id))
            if product is None:
                raise NotFoundError(f"Product not found: {item.product_id}")
            lines.append(
                models.OrderLine(
                    line_no=line_no,
                    product_id=product.id,
                    name=product.name,
                    qty=item.qty,
                    unit_price=product.price,
                )
            )
        return lines

    async def place_order(self, user_id: str, address: str) -> models.Order:
        address = (address or "").strip()
        if not address:
            raise ValidationError("Please enter a shipping address", field="address")

        async with self.locks.hold(user_id):
            if await guarded(self.store.get_user(user_id)) is None:
                raise NotFoundError("User not found")
            cart = await guarded(self.store.list_cart(user_id))
            if cart.is_empty():
                raise ValidationError("Cart is empty", field="cart")

            try:
                lines = await self._price(cart)
                order = models.Order(
                    id=uuid4().hex,
                    user_id=user_id,
                    address=address,
                    total=sum(line.subtotal for line in lines),
                    status=models.OrderStatus.PRICED,
                    created_at=datetime.now(timezone.utc),
                    lines=tuple(lines),
                )
                _logger.debug(
                    f"Order {order.id} {order.status.value}: {len(lines)} lines, total {order.total:.2f}"
                )
                order = replace(order, status=models.OrderStatus.PLACED)
                await guarded(self.store.place_order(order, cart))
            except Exception as e:
                _logger.warning(
                    f"Checkout for {user_id} {models.OrderStatus.REJECTED.value}: {e}"
                )
                raise

        _logger.info(f"Order {order.id} placed for {user_id}, total {order.total:.2f}")
        return order

    async def get_orders(self, user_id: str) -> List[models.Order]:
        """Newest first; an empty list when the user has none."""
        return await guarded(self.store.list_orders(user_id))
