from typing import List, Optional

from storefront.db import crud, models
from storefront.db.database import guarded
from storefront.errors import NotFoundError
from storefront.services.ports import CatalogStore


class CatalogService:
    """Read-only view of the product catalog."""

    def __init__(self, store: Optional[CatalogStore] = None):
        self.store = store if store is not None else crud

    async def list_products(self) -> List[models.Product]:
        return await guarded(self.store.list_products())

    async def get_product(self, product_id: str) -> models.Product:
        product = await guarded(self.store.get_product(product_id))
        if product is None:
            raise NotFoundError("Product not found")
        return product
