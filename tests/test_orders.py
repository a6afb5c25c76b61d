import asyncio
from unittest import mock

import aiosqlite

from helpers import DbTestCase

from storefront import config
from storefront.db import crud, models
from storefront.errors import InternalError, NotFoundError, ValidationError
from storefront.services.cart import CartManager
from storefront.services.locks import UserLocks
from storefront.services.orders import OrderEngine


class OrderEngineTestCase(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.user = await self.make_user()
        locks = UserLocks()
        self.cart = CartManager(locks=locks)
        self.engine = OrderEngine(locks=locks)

    async def test_place_single_item_order(self):
        await self.make_product("p1", 10)
        await self.cart.add_item(self.user.id, "p1")

        order = await self.engine.place_order(self.user.id, "123 Main St")
        self.assertEqual(order.total, 10)
        self.assertEqual(order.status, models.OrderStatus.PLACED)
        self.assertEqual(order.address, "123 Main St")
        self.assertTrue((await crud.list_cart(self.user.id)).is_empty())

        orders = await self.engine.get_orders(self.user.id)
        self.assertEqual([o.id for o in orders], [order.id])
        self.assertEqual(orders[0], order)

    async def test_total_uses_current_catalog_prices(self):
        await self.cart.add_item(self.user.id, "p1002")
        await self.cart.add_item(self.user.id, "p1004")
        await self.cart.add_item(self.user.id, "p1004")
        # price changes between add and checkout
        await crud.update_product_price("p1004", 7.5)

        order = await self.engine.place_order(self.user.id, "Somewhere")
        self.assertAlmostEqual(order.total, 89.99 + 2 * 7.5)
        self.assertEqual(
            [(line.product_id, line.qty, line.unit_price) for line in order.lines],
            [("p1002", 1, 89.99), ("p1004", 2, 7.5)],
        )

    async def test_order_is_a_price_snapshot(self):
        await self.cart.add_item(self.user.id, "p1003")
        order = await self.engine.place_order(self.user.id, "Somewhere")
        await crud.update_product_price("p1003", 99.0)

        stored = (await self.engine.get_orders(self.user.id))[0]
        self.assertEqual(stored.total, order.total)
        self.assertEqual(stored.lines[0].unit_price, 9.5)

    async def test_empty_cart_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            await self.engine.place_order(self.user.id, "123 Main St")
        self.assertEqual(ctx.exception.message, "Cart is empty")
        self.assertEqual(await self.engine.get_orders(self.user.id), [])

    async def test_blank_address_rejected_before_store(self):
        store = mock.AsyncMock()
        engine = OrderEngine(store=store)
        with self.assertRaises(ValidationError) as ctx:
            await engine.place_order(self.user.id, "   ")
        self.assertEqual(ctx.exception.field, "address")
        self.assertFalse(store.mock_calls)

    async def test_unknown_user(self):
        with self.assertRaises(NotFoundError):
            await self.engine.place_order("ghost", "123 Main St")

    async def test_vanished_product_rejects_whole_order(self):
        await self.make_product("gone", 3.0)
        await self.cart.add_item(self.user.id, "p1001")
        await self.cart.add_item(self.user.id, "gone")
        await crud.delete_product("gone")

        with self.assertRaises(NotFoundError) as ctx:
            await self.engine.place_order(self.user.id, "123 Main St")
        self.assertEqual(ctx.exception.message, "Product not found: gone")
        self.assertEqual(len((await crud.list_cart(self.user.id)).items), 2)
        self.assertEqual(await self.engine.get_orders(self.user.id), [])

    async def test_store_failure_leaves_no_partial_state(self):
        await self.cart.add_item(self.user.id, "p1001")
        with mock.patch.object(
            crud, "place_order", side_effect=aiosqlite.OperationalError("Database error")
        ):
            with self.assertRaises(InternalError) as ctx:
                await self.engine.place_order(self.user.id, "123 Main St")
        self.assertEqual(ctx.exception.message, "Database error")
        self.assertEqual(
            (await crud.list_cart(self.user.id)).items, (models.LineItem("p1001", 1),)
        )
        self.assertEqual(await self.engine.get_orders(self.user.id), [])

    async def test_slow_store_times_out(self):
        async def slow_get_user(user_id):
            await asyncio.sleep(1)

        await self.cart.add_item(self.user.id, "p1001")
        with mock.patch.object(config, "STORE_TIMEOUT", 0.01), mock.patch.object(
            crud, "get_user", slow_get_user
        ):
            with self.assertRaises(InternalError) as ctx:
                await self.engine.place_order(self.user.id, "123 Main St")
        self.assertEqual(ctx.exception.message, "Store call timed out")
        self.assertEqual(len(self.engine.locks), 0)

    async def test_concurrent_add_and_checkout(self):
        await self.cart.add_item(self.user.id, "p1001")

        add, order = await asyncio.gather(
            self.cart.add_item(self.user.id, "p1002"),
            self.engine.place_order(self.user.id, "123 Main St"),
        )
        ordered = {line.product_id for line in order.lines}
        remaining = {item.product_id for item in (await crud.list_cart(self.user.id)).items}
        # every unit ends up in exactly one place
        self.assertIn("p1001", ordered)
        self.assertEqual(ordered | remaining, {"p1001", "p1002"})
        self.assertFalse(ordered & remaining)

    async def test_get_orders_newest_first(self):
        ids = []
        for product_id in ("p1001", "p1003", "p1004"):
            await self.cart.add_item(self.user.id, product_id)
            ids.append((await self.engine.place_order(self.user.id, "Addr")).id)
        orders = await self.engine.get_orders(self.user.id)
        self.assertEqual([o.id for o in orders], list(reversed(ids)))
        self.assertEqual(await self.engine.get_orders("nobody"), [])
