# src/storefront/db/crud.py
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

import aiosqlite

from storefront.db import models
from storefront.db.database import connect, transaction
from storefront.errors import ConflictError


def normalize_email(email: Optional[str]) -> str:
    return str(email or "").strip().lower()


def _new_id() -> str:
    return uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_datetime(val) -> datetime:
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(str(val))


def _row_to_user(row) -> models.User:
    return models.User(
        id=row[0],
        name=row[1],
        email=row[2],
        password_hash=row[3],
        created_at=_to_datetime(row[4]),
    )


_PRODUCT_COLUMNS = (
    "id, name, description, price, image, category, sub_category, "
    "rating, in_stock, free_shipping"
)


def _row_to_product(row, reviews=()) -> models.Product:
    return models.Product(
        id=row[0],
        name=row[1],
        description=row[2],
        price=float(row[3]),
        image=row[4],
        category=row[5],
        sub_category=row[6],
        rating=float(row[7]),
        in_stock=bool(row[8]),
        free_shipping=bool(row[9]),
        reviews=tuple(reviews),
    )


# ---------------------------
# Users & Registration
# ---------------------------


async def get_user(user_id: str) -> Optional[models.User]:
    """Return the User for the given id, or None if not found."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, name, email, password_hash, created_at FROM users WHERE id = ?;",
            (user_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return _row_to_user(row)


async def get_user_by_email(email: str) -> Optional[models.User]:
    """Case-insensitive lookup by email."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, name, email, password_hash, created_at FROM users WHERE email = ?;",
            (normalize_email(email),),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return _row_to_user(row)


async def create_user(
    name: str, email: str, password_hash: str, created_at: Optional[datetime] = None
) -> models.User:
    """
    Insert a new user with an empty cart and return it.
    A concurrent registration of the same email raises ConflictError.
    """
    user = models.User(
        id=_new_id(),
        name=name,
        email=normalize_email(email),
        password_hash=password_hash,
        created_at=created_at or _now(),
    )
    try:
        async with connect() as conn:
            await conn.execute(
                "INSERT INTO users(id, name, email, password_hash, created_at) VALUES (?, ?, ?, ?, ?);",
                (
                    user.id,
                    user.name,
                    user.email,
                    user.password_hash,
                    user.created_at.isoformat(),
                ),
            )
            await conn.commit()
    except aiosqlite.IntegrityError as e:
        raise ConflictError("User already exists") from e
    return user


# ---------------------------
# Products
# ---------------------------


async def _reviews_for(
    conn: aiosqlite.Connection, product_ids: List[str]
) -> Dict[str, List[models.Review]]:
    if not product_ids:
        return {}
    marks = ", ".join("?" * len(product_ids))
    cur = await conn.execute(
        f"SELECT product_id, user, comment, rating FROM reviews WHERE product_id IN ({marks}) ORDER BY rid;",
        tuple(product_ids),
    )
    rows = await cur.fetchall()
    await cur.close()
    grouped: Dict[str, List[models.Review]] = {}
    for row in rows:
        grouped.setdefault(row[0], []).append(
            models.Review(user=row[1], comment=row[2], rating=float(row[3]))
        )
    return grouped


async def list_products() -> List[models.Product]:
    """All products ordered by id, reviews included."""
    async with connect() as conn:
        cur = await conn.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products ORDER BY id;")
        rows = await cur.fetchall()
        await cur.close()
        reviews = await _reviews_for(conn, [row[0] for row in rows])
    return [_row_to_product(row, reviews.get(row[0], ())) for row in rows]


async def get_product(product_id: str) -> Optional[models.Product]:
    """Fetch a product by id."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?;", (product_id,)
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None
        reviews = await _reviews_for(conn, [row[0]])
    return _row_to_product(row, reviews.get(row[0], ()))


async def create_product(product: models.Product) -> models.Product:
    """Insert a product (and its reviews). An empty id gets a generated one."""
    if not product.id:
        product = replace(product, id=_new_id())
    async with transaction() as conn:
        await conn.execute(
            f"INSERT INTO products({_PRODUCT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);",
            (
                product.id,
                product.name,
                product.description,
                product.price,
                product.image,
                product.category,
                product.sub_category,
                product.rating,
                int(product.in_stock),
                int(product.free_shipping),
            ),
        )
        await conn.executemany(
            "INSERT INTO reviews(product_id, user, comment, rating) VALUES (?, ?, ?, ?);",
            [(product.id, r.user, r.comment, r.rating) for r in product.reviews],
        )
    return product


async def update_product_price(product_id: str, price: float) -> bool:
    """Return True if a row was updated."""
    if price < 0:
        raise ValueError("Price cannot be negative.")
    async with connect() as conn:
        res = await conn.execute(
            "UPDATE products SET price = ? WHERE id = ?;", (price, product_id)
        )
        await conn.commit()
        return res.rowcount > 0


async def delete_product(product_id: str) -> bool:
    """Remove a product from the catalog. Carts keep dangling references."""
    async with connect() as conn:
        res = await conn.execute("DELETE FROM products WHERE id = ?;", (product_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Cart Management
# ---------------------------


async def list_cart(user_id: str) -> models.Cart:
    """Return the user's cart lines in the order products were first added."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT product_id, qty FROM cart WHERE user_id = ? ORDER BY line_no;",
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return models.Cart(
        user_id=user_id,
        items=tuple(models.LineItem(product_id=row[0], qty=int(row[1])) for row in rows),
    )


async def add_to_cart(user_id: str, product_id: str, qty: int = 1) -> None:
    """
    Add qty units of a product. If the product is already in the cart its
    line is incremented in place, in a single statement.
    """
    if qty <= 0:
        raise ValueError("Quantity must be positive.")
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO cart(user_id, product_id, qty) VALUES (?, ?, ?)
            ON CONFLICT(user_id, product_id) DO UPDATE SET qty = qty + excluded.qty;
            """,
            (user_id, product_id, qty),
        )
        await conn.commit()


async def remove_from_cart(user_id: str, product_id: str) -> bool:
    """
    Take one unit of a product out of the cart, dropping the line when it
    reaches zero. Returns False when the product was not in the cart.
    """
    async with transaction() as conn:
        res = await conn.execute(
            "DELETE FROM cart WHERE user_id = ? AND product_id = ? AND qty <= 1;",
            (user_id, product_id),
        )
        if res.rowcount > 0:
            return True
        res = await conn.execute(
            "UPDATE cart SET qty = qty - 1 WHERE user_id = ? AND product_id = ?;",
            (user_id, product_id),
        )
        return res.rowcount > 0


async def clear_cart(user_id: str) -> None:
    """Remove all items from the user's cart."""
    async with connect() as conn:
        await conn.execute("DELETE FROM cart WHERE user_id = ?;", (user_id,))
        await conn.commit()


# ---------------------------
# Checkout & Orders
# ---------------------------


async def place_order(order: models.Order, priced_cart: models.Cart) -> None:
    """
    Persist the order with its lines and empty the cart it was priced from,
    all in one transaction.

    Every cart line is deleted only if it still holds the quantity that was
    priced; otherwise nothing is written and ConflictError is raised.
    """
    async with transaction() as conn:
        await conn.execute(
            "INSERT INTO orders(id, user_id, address, total, status, created_at) VALUES (?, ?, ?, ?, ?, ?);",
            (
                order.id,
                order.user_id,
                order.address,
                order.total,
                order.status.value,
                order.created_at.isoformat(),
            ),
        )
        await conn.executemany(
            "INSERT INTO order_lines(order_id, line_no, product_id, name, qty, unit_price) VALUES (?, ?, ?, ?, ?, ?);",
            [
                (order.id, line.line_no, line.product_id, line.name, line.qty, line.unit_price)
                for line in order.lines
            ],
        )
        for item in priced_cart.items:
            res = await conn.execute(
                "DELETE FROM cart WHERE user_id = ? AND product_id = ? AND qty = ?;",
                (priced_cart.user_id, item.product_id, item.qty),
            )
            if res.rowcount != 1:
                raise ConflictError("Cart changed during checkout")


async def _lines_for(
    conn: aiosqlite.Connection, order_ids: List[str]
) -> Dict[str, List[models.OrderLine]]:
    if not order_ids:
        return {}
    marks = ", ".join("?" * len(order_ids))
    cur = await conn.execute(
        f"""
        SELECT order_id, line_no, product_id, name, qty, unit_price
        FROM order_lines
        WHERE order_id IN ({marks})
        ORDER BY order_id, line_no;
        """,
        tuple(order_ids),
    )
    rows = await cur.fetchall()
    await cur.close()
    grouped: Dict[str, List[models.OrderLine]] = {}
    for row in rows:
        grouped.setdefault(row[0], []).append(
            models.OrderLine(
                line_no=row[1],
                product_id=row[2],
                name=row[3],
                qty=int(row[4]),
                unit_price=float(row[5]),
            )
        )
    return grouped


def _row_to_order(row, lines) -> models.Order:
    return models.Order(
        id=row[0],
        user_id=row[1],
        address=row[2],
        total=float(row[3]),
        status=models.OrderStatus(row[4]),
        created_at=_to_datetime(row[5]),
        lines=tuple(lines),
    )


async def list_orders(user_id: str) -> List[models.Order]:
    """A user's orders in reverse chronological order, lines included."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, address, total, status, created_at
            FROM orders
            WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
        lines = await _lines_for(conn, [row[0] for row in rows])
    return [_row_to_order(row, lines.get(row[0], ())) for row in rows]


async def get_order(order_id: str) -> Optional[models.Order]:
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, user_id, address, total, status, created_at FROM orders WHERE id = ?;",
            (order_id,),
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None
        lines = await _lines_for(conn, [order_id])
    return _row_to_order(row, lines.get(order_id, ()))
