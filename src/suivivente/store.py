"""Interface de stockage consommée par le pipeline et implémentation en mémoire."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from suivivente.config import StoreError
from suivivente.dedup import entity_key
from suivivente.schema import check_kind

logger = logging.getLogger(__name__)


@dataclass
class InsertResult:
    """Résultat d'une insertion groupée."""

    inserted: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@runtime_checkable
class RecordStore(Protocol):
    """Couche de stockage : insertion, recherche, mouvements de stock, journal."""

    supports_atomic_sale: bool

    def insert_batch(self, kind: str, records: Sequence[dict[str, Any]]) -> InsertResult: ...

    def find_existing(
        self, kind: str, key_fields: Sequence[str], candidates: Sequence[dict[str, Any]]
    ) -> list[dict[str, Any]]: ...

    def adjust_stock(self, product_name: str, delta: int) -> None: ...

    def insert_sale_and_adjust_stock(self, sale: dict[str, Any]) -> dict[str, Any]: ...

    def append_audit_log(self, action: str, details: str) -> None: ...


class MemoryRecordStore:
    """
    RecordStore en mémoire (tests, essais locaux).

    Les ventes et le journal sont des listes, les produits un dict indexé par
    nom. fail_products simule un refus d'insertion pour certains produits,
    fail_stock un échec de mise à jour du stock.
    """

    def __init__(
        self,
        products: Iterable[dict[str, Any]] = (),
        *,
        atomic: bool = False,
        fail_products: Iterable[str] = (),
        fail_stock: Iterable[str] = (),
        fail_audit: bool = False,
    ) -> None:
        self.sales: list[dict[str, Any]] = []
        self.products: dict[str, dict[str, Any]] = {p["name"]: dict(p) for p in products}
        self.logs: list[dict[str, Any]] = []
        self.supports_atomic_sale = atomic
        self.fail_products = set(fail_products)
        self.fail_stock = set(fail_stock)
        self.fail_audit = fail_audit
        self._lock = threading.Lock()
        self._next_id = 1

    def _check_insertable(self, kind: str, record: dict[str, Any]) -> None:
        name = record.get("product") if kind == "sales" else record.get("name")
        if name in self.fail_products:
            raise StoreError(f"insertion refusée pour {name!r}")

    def _with_id(self, record: dict[str, Any]) -> dict[str, Any]:
        row = dict(record)
        row["id"] = self._next_id
        row["created_at"] = datetime.now().isoformat()
        self._next_id += 1
        return row

    def _upsert_product(self, record: dict[str, Any]) -> dict[str, Any]:
        current = self.products.get(record["name"])
        if current is None:
            current = self._with_id(record)
        else:
            current.update(record)
        self.products[record["name"]] = current
        return current

    def insert_batch(self, kind: str, records: Sequence[dict[str, Any]]) -> InsertResult:
        kind = check_kind(kind)
        with self._lock:
            try:
                for record in records:
                    self._check_insertable(kind, record)
            except StoreError as e:
                return InsertResult(error=str(e))
            if kind == "sales":
                inserted = [self._with_id(r) for r in records]
                self.sales.extend(inserted)
            else:
                inserted = [dict(self._upsert_product(r)) for r in records]
        return InsertResult(inserted=inserted)

    def find_existing(
        self, kind: str, key_fields: Sequence[str], candidates: Sequence[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        kind = check_kind(kind)
        wanted = {entity_key(kind, c) for c in candidates}
        pool = self.sales if kind == "sales" else list(self.products.values())
        return [dict(r) for r in pool if entity_key(kind, r) in wanted]

    def _adjust(self, product_name: str, delta: int) -> None:
        if product_name in self.fail_stock:
            raise StoreError(f"mise à jour du stock impossible pour {product_name!r}")
        product = self.products.get(product_name)
        if product is None:
            logger.debug("Produit %r absent du stock, mouvement ignoré", product_name)
            return
        product["current_stock"] = product.get("current_stock", 0) + delta

    def adjust_stock(self, product_name: str, delta: int) -> None:
        with self._lock:
            self._adjust(product_name, delta)

    def insert_sale_and_adjust_stock(self, sale: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            self._check_insertable("sales", sale)
            self._adjust(sale["product"], -int(sale["quantity"]))
            row = self._with_id(sale)
            self.sales.append(row)
            return dict(row)

    def append_audit_log(self, action: str, details: str) -> None:
        if self.fail_audit:
            raise StoreError("journal indisponible")
        self.logs.append({"action": action, "details": details, "date": datetime.now().isoformat()})
