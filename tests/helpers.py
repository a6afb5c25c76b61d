import os
import sys
import tempfile
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from storefront.db import crud  # noqa: E402
from storefront.db import database as db_database  # noqa: E402
from storefront.db import models  # noqa: E402
from storefront.services.security import BcryptHasher, JwtTokenIssuer  # noqa: E402

# the cheapest work factor bcrypt accepts
FAST_HASHER = BcryptHasher(rounds=4)
TOKENS = JwtTokenIssuer(secret="storefront-test-secret-0123456789abcdef")


class DbTestCase(unittest.IsolatedAsyncioTestCase):
    """Points the store at a fresh temporary sqlite file for every test."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self._orig_path = db_database.DB_PATH
        db_database.DB_PATH = self.db_path
        db_database._initialized = False

    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute("SELECT name FROM sqlite_master WHERE type='table';")
            await cur.fetchall()
            await cur.close()

    def tearDown(self):
        db_database.DB_PATH = self._orig_path
        db_database._initialized = False
        self.temp_dir.cleanup()

    async def make_user(self, name="Test User", email="test@example.com", password="password123"):
        hashed = await FAST_HASHER.hash(password)
        return await crud.create_user(name, email, hashed)

    async def make_product(self, product_id, price, name=None):
        return await crud.create_product(
            models.Product(id=product_id, name=name or product_id, price=price)
        )
