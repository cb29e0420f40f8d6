"""Normalisation des colonnes importées vers le schéma canonique."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from suivivente.config import SuiviVenteError
from suivivente.io_excel import RawRecord
from suivivente.normalize import norm_header
from suivivente.schema import columns_for

logger = logging.getLogger(__name__)


class SchemaError(SuiviVenteError):
    """Colonnes requises absentes du fichier."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Colonnes manquantes: {', '.join(self.missing)}")


@dataclass
class NormalizedRecord:
    """Ligne dont les clés du schéma portent le nom canonique."""

    values: dict[str, Any]
    source_row_number: int

    def get(self, column: str, default: Any = "") -> Any:
        return self.values.get(column, default)


@dataclass
class ClassifiedRecord(NormalizedRecord):
    """Ligne normalisée marquée nouvelle ou doublon."""

    dedup_key: str = ""
    is_duplicate: bool = False
    duplicate_of: int | None = None  # numéro de ligne de la première occurrence
    duplicate_reason: str = ""  # "batch" ou "existing"


def find_missing_columns(headers: Iterable[Any], columns: Sequence[str]) -> list[str]:
    """
    Retourne les colonnes requises absentes des en-têtes (noms canoniques, ordre du schéma).

    La comparaison ignore accents, casse et espaces de bord.
    """
    available = {norm_header(h) for h in headers}
    return [col for col in columns if norm_header(col) not in available]


def build_header_map(headers: Iterable[Any], columns: Sequence[str]) -> dict[str, str]:
    """Associe chaque en-tête du fichier reconnu à sa colonne canonique."""
    canonical = {norm_header(col): col for col in columns}
    mapping: dict[str, str] = {}
    for h in headers:
        col = canonical.get(norm_header(h))
        if col is not None:
            mapping[str(h)] = col
    return mapping


def normalize_columns(records: Sequence[RawRecord], kind: str) -> list[NormalizedRecord]:
    """
    Réécrit les clés des lignes brutes selon le schéma du type d'import.

    Seuls les en-têtes de la première ligne sont vérifiés. Les clés hors
    schéma sont conservées telles quelles.

    Raises:
        SchemaError: Si une ou plusieurs colonnes requises sont absentes.
    """
    columns = columns_for(kind)
    if not records:
        return []

    headers = list(records[0].keys())
    missing = find_missing_columns(headers, columns)
    if missing:
        logger.info("Colonnes manquantes pour l'import %s: %s (en-têtes: %s)", kind, missing, headers)
        raise SchemaError(missing)

    out: list[NormalizedRecord] = []
    for index, row in enumerate(records):
        header_map = build_header_map(row.keys(), columns)
        values: dict[str, Any] = {}
        for key, val in row.items():
            values[header_map.get(str(key), key)] = val
        for col in columns:
            values.setdefault(col, "")
        out.append(NormalizedRecord(values=values, source_row_number=index + 2))

    logger.debug("%d ligne(s) normalisée(s) pour l'import %s", len(out), kind)
    return out
