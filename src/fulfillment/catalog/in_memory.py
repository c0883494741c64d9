"""In-memory catalog adapter for development and tests."""

from fulfillment.catalog.port import CatalogPort, ProductRecord


class InMemoryCatalog(CatalogPort):
    def __init__(self, products: list[ProductRecord] | None = None):
        self._products: dict[tuple[str, str], ProductRecord] = {}
        for product in products or []:
            self.add(product)

    def add(self, product: ProductRecord) -> None:
        self._products[(product.kind, str(product.product_id))] = product

    def get_product(self, kind: str, product_id: str) -> ProductRecord | None:
        return self._products.get((kind, str(product_id)))

    def reset(self) -> None:
        self._products.clear()
