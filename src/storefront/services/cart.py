"""
Cart mutations.

Adding a product already in the cart bumps its quantity; removing takes one
unit away and drops the line at zero, so add followed by remove restores the
cart exactly. Removing something that is not there is a successful no-op.
"""

from typing import Optional

from storefront.db import crud, models
from storefront.db.database import guarded
from storefront.errors import NotFoundError
from storefront.services.locks import UserLocks
from storefront.services.ports import CartStore
from storefront.utils.logger import get_logger

_logger = get_logger(__name__)


class CartManager:
    def __init__(self, store: Optional[CartStore] = None, locks: Optional[UserLocks] = None):
        self.store = store if store is not None else crud
        # shared with the order engine so checkout and cart edits serialize
        self.locks = locks if locks is not None else UserLocks()

    async def _require_user(self, user_id: str) -> models.User:
        user = await guarded(self.store.get_user(user_id))
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def add_item(self, user_id: str, product_id: str) -> models.Cart:
        async with self.locks.hold(user_id):
            await self._require_user(user_id)
            if await guarded(self.store.get_product(product_id)) is None:
                raise NotFoundError("Product not found")
            await guarded(self.store.add_to_cart(user_id, product_id, 1))
            cart = await guarded(self.store.list_cart(user_id))
        _logger.debug(f"Added {product_id} to cart of {user_id} ({cart.count} units)")
        return cart

    async def remove_item(self, user_id: str, product_id: str) -> models.Cart:
        async with self.locks.hold(user_id):
            await self._require_user(user_id)
            removed = await guarded(self.store.remove_from_cart(user_id, product_id))
            cart = await guarded(self.store.list_cart(user_id))
        if removed:
            _logger.debug(f"Removed {product_id} from cart of {user_id}")
        return cart

    async def get_cart(self, user_id: str) -> models.Cart:
        await self._require_user(user_id)
        return await guarded(self.store.list_cart(user_id))
