"""RecordStore adossé à Supabase (tables sales, products, logs)."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from dotenv import load_dotenv
from supabase import Client, create_client

from suivivente.config import ConfigError, StoreError
from suivivente.dedup import entity_key
from suivivente.schema import check_kind
from suivivente.store import InsertResult

logger = logging.getLogger(__name__)

TABLES = {"sales": "sales", "stock": "products"}
STOCK_RPC = "update_product_stock"


class SupabaseRecordStore:
    """
    Accès Supabase pour le pipeline d'import.

    Le décrément de stock passe par la fonction serveur update_product_stock
    (mise à jour atomique côté base). Si atomic_rpc est fourni, chaque vente
    est insérée et déstockée par cette seule fonction serveur. La recherche
    des doublons interroge les noms par paquets de chunk_size.
    """

    def __init__(self, client: Client, *, atomic_rpc: str | None = None, chunk_size: int = 50) -> None:
        self._client = client
        self._atomic_rpc = atomic_rpc
        self.supports_atomic_sale = atomic_rpc is not None
        self._chunk_size = max(1, chunk_size)

    @classmethod
    def from_env(cls, chunk_size: int = 50) -> SupabaseRecordStore:
        """
        Construit le store depuis l'environnement (.env accepté).

        Variables : SUPABASE_URL, SUPABASE_KEY (ou SUPABASE_ANON_KEY),
        SUPABASE_ATOMIC_RPC (optionnelle).
        """
        load_dotenv()
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_ANON_KEY")
        if not url or not key:
            raise ConfigError("Veuillez définir SUPABASE_URL et SUPABASE_KEY (fichier .env ou environnement).")
        return cls(
            create_client(url, key),
            atomic_rpc=os.getenv("SUPABASE_ATOMIC_RPC") or None,
            chunk_size=chunk_size,
        )

    def insert_batch(self, kind: str, records: Sequence[dict[str, Any]]) -> InsertResult:
        kind = check_kind(kind)
        if not records:
            return InsertResult()
        table = self._client.table(TABLES[kind])
        try:
            if kind == "stock":
                response = table.upsert(list(records), on_conflict="name").execute()
            else:
                response = table.insert(list(records)).execute()
        except Exception as e:
            logger.warning("Insertion %s refusée: %s", TABLES[kind], e)
            return InsertResult(error=str(e))
        return InsertResult(inserted=list(response.data or []))

    def find_existing(
        self, kind: str, key_fields: Sequence[str], candidates: Sequence[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        kind = check_kind(kind)
        if not candidates:
            return []
        name_field = "product" if kind == "sales" else "name"
        names = sorted({str(c.get(name_field, "")) for c in candidates})
        wanted = {entity_key(kind, c) for c in candidates}
        found: list[dict[str, Any]] = []
        # Filtre in_() par paquets : l'URL PostgREST a une longueur limitée
        for start in range(0, len(names), self._chunk_size):
            try:
                response = (
                    self._client.table(TABLES[kind])
                    .select(",".join(key_fields))
                    .in_(name_field, names[start : start + self._chunk_size])
                    .execute()
                )
            except Exception as e:
                raise StoreError(f"Recherche des doublons impossible: {e}") from e
            found.extend(row for row in (response.data or []) if entity_key(kind, row) in wanted)
        return found

    def adjust_stock(self, product_name: str, delta: int) -> None:
        try:
            self._client.rpc(STOCK_RPC, {"product_name": product_name, "quantity_sold": -delta}).execute()
        except Exception as e:
            raise StoreError(f"Mise à jour du stock impossible pour {product_name!r}: {e}") from e

    def insert_sale_and_adjust_stock(self, sale: dict[str, Any]) -> dict[str, Any]:
        if self._atomic_rpc is None:
            raise StoreError("Aucune fonction serveur atomique configurée")
        try:
            response = self._client.rpc(self._atomic_rpc, {"sale": sale}).execute()
        except Exception as e:
            raise StoreError(str(e)) from e
        data = response.data
        if isinstance(data, list):
            return data[0] if data else dict(sale)
        return data or dict(sale)

    def append_audit_log(self, action: str, details: str) -> None:
        try:
            self._client.table("logs").insert(
                [{"action": action, "details": details, "date": datetime.now().isoformat()}]
            ).execute()
        except Exception as e:
            raise StoreError(f"Journalisation impossible: {e}") from e
