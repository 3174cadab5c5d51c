"""In-memory product catalog with BM25 keyword retrieval.

Products are loaded from a JSON list and indexed into a RAM-backed whoosh
index over their name, category and description.  Retrieval ranks products
with whoosh's BM25F scoring, which is enough to ground the assistant's
answers in real catalog entries.
"""

from __future__ import annotations

import json
import logging
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from whoosh.analysis import StandardAnalyzer
from whoosh.fields import ID, TEXT, Schema
from whoosh.filedb.filestore import RamStorage
from whoosh.query import Or, Term

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = (
    "No relevant product information found. Please try a different query "
    "or check if product data has been loaded."
)

# No stop list: short Vietnamese words ("an", "to") are meaningful here
_ANALYZER = StandardAnalyzer(stoplist=None, minsize=1)


@dataclass
class Product:
    """A catalog entry."""

    id: int
    name: str
    price: Optional[float] = None
    sale_price: Optional[float] = None
    description: str = ""
    category: str = ""
    source: str = ""
    page: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        known = {"id", "name", "price", "sale_price", "description", "category", "source", "page"}
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            price=data.get("price"),
            sale_price=data.get("sale_price"),
            description=data.get("description") or "",
            category=data.get("category") or "",
            source=data.get("source") or "",
            page=data.get("page"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def searchable_text(self) -> str:
        return " ".join([self.name, self.category, self.description])

    def render(self) -> str:
        lines = [f"ID: {self.id}", f"Tên: {self.name}"]
        if self.category:
            lines.append(f"Danh mục: {self.category}")
        if self.price is not None:
            lines.append(f"Giá: {self.price:,.0f} VND")
        if self.sale_price is not None:
            lines.append(f"Giá khuyến mãi: {self.sale_price:,.0f} VND")
        if self.description:
            lines.append(f"Mô tả: {self.description}")
        for key, value in self.extra.items():
            lines.append(f"{key}: {value}")
        return "\n".join(lines)


def _terms(text: str) -> list[str]:
    text = unicodedata.normalize("NFC", text)
    return list(dict.fromkeys(token.text for token in _ANALYZER(text)))


class ProductCatalog:
    """Keyword-searchable collection of :class:`Product` entries."""

    def __init__(self, products: Optional[list[Product]] = None) -> None:
        self._products = list(products or [])
        schema = Schema(pid=ID(stored=True, unique=True), content=TEXT(analyzer=_ANALYZER))
        self._index = RamStorage().create_index(schema)
        writer = self._index.writer()
        for position, product in enumerate(self._products):
            writer.add_document(
                pid=str(position),
                content=unicodedata.normalize("NFC", product.searchable_text()),
            )
        writer.commit()

    @classmethod
    def from_json(cls, path: str | Path) -> "ProductCatalog":
        """Load a catalog from a JSON list (or ``{"products": [...]}``)."""
        path = Path(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("products", [])
        products = []
        for entry in data:
            try:
                product = Product.from_dict(entry)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed catalog entry: %r", entry)
                continue
            if not product.source:
                product.source = path.name
            products.append(product)
        logger.info("Loaded %d product(s) from %s", len(products), path)
        return cls(products)

    def __len__(self) -> int:
        return len(self._products)

    def get(self, product_id: int) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def search(self, query: str, k: int = 6) -> list[Product]:
        """Return up to *k* products ranked by BM25 relevance to *query*.

        Query words are matched as plain terms (any of them may match), so
        user text is never interpreted as query syntax.
        """
        terms = _terms(query)
        if not terms or k <= 0:
            return []
        matcher = Or([Term("content", term) for term in terms])
        with self._index.searcher() as searcher:
            hits = searcher.search(matcher, limit=k)
            return [self._products[int(hit["pid"])] for hit in hits]

    @staticmethod
    def format_results(query: str, products: list[Product]) -> str:
        """Render retrieved products grouped by source for the prompt."""
        if not products:
            return NO_RESULTS_MESSAGE

        grouped: dict[str, list[str]] = {}
        for product in products:
            source = product.source or "Unknown Source"
            if product.page:
                source = f"{source} (Page {product.page})"
            grouped.setdefault(source, []).append(product.render())

        sections = [
            f"Source: {source}\n\nInformation:\n" + "\n---\n".join(contents)
            for source, contents in grouped.items()
        ]
        summary = (
            f"Found {len(products)} relevant sections from {len(grouped)} sources "
            f'for query: "{query}".\n\n'
        )
        return summary + ("\n\n" + "-" * 40 + "\n\n").join(sections)
