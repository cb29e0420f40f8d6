"""Détection des doublons : intra-fichier et contre les données déjà enregistrées."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from suivivente.columns import ClassifiedRecord, NormalizedRecord
from suivivente.normalize import cell_text, norm_text
from suivivente.schema import field_map_for

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"


@dataclass
class DedupResult:
    """Partition des lignes en nouvelles et doublons (ordre du fichier conservé)."""

    valid_data: list[ClassifiedRecord] = field(default_factory=list)
    duplicates: list[ClassifiedRecord] = field(default_factory=list)

    @property
    def records(self) -> list[ClassifiedRecord]:
        """Toutes les lignes, dans l'ordre du fichier."""
        return sorted(self.valid_data + self.duplicates, key=lambda r: r.source_row_number)


def build_dedup_key(values: Mapping[str, Any], columns: Sequence[str]) -> str:
    """Concatène les valeurs des colonnes du schéma (trim, minuscules, vide si absent)."""
    return KEY_SEPARATOR.join(norm_text(values.get(col, "")) for col in columns)


def classify_records(records: Sequence[NormalizedRecord], columns: Sequence[str]) -> DedupResult:
    """
    Sépare les lignes nouvelles des doublons au sein du lot.

    La première occurrence d'une clé est nouvelle ; chaque occurrence
    suivante est un doublon de la première. Ne lève jamais d'erreur.
    """
    result = DedupResult()
    seen: dict[str, int] = {}

    for rec in records:
        key = build_dedup_key(rec.values, columns)
        first = seen.get(key)
        classified = ClassifiedRecord(
            values=dict(rec.values),
            source_row_number=rec.source_row_number,
            dedup_key=key,
            is_duplicate=first is not None,
            duplicate_of=first,
            duplicate_reason="batch" if first is not None else "",
        )
        if first is None:
            seen[key] = rec.source_row_number
            result.valid_data.append(classified)
        else:
            logger.debug("Doublon ligne %d (première occurrence ligne %d)", rec.source_row_number, first)
            result.duplicates.append(classified)

    logger.info("%d ligne(s) nouvelle(s), %d doublon(s) dans le lot", len(result.valid_data), len(result.duplicates))
    return result


def _key_part(val: Any) -> str:
    if isinstance(val, float) and val.is_integer():
        val = int(val)
    return cell_text(val).strip().lower()


def entity_key(kind: str, entity: Mapping[str, Any]) -> str:
    """
    Clé de doublon d'une entité transformée (vente ou article de stock).

    Utilise les champs correspondant aux colonnes du schéma, avec les valeurs
    converties : la même clé sert pour le lot et pour les données persistées.
    """
    return KEY_SEPARATOR.join(_key_part(entity.get(f, "")) for f in field_map_for(kind).values())


def mark_existing(
    kind: str,
    result: DedupResult,
    entities: Sequence[Mapping[str, Any]],
    existing: Iterable[Mapping[str, Any]],
) -> DedupResult:
    """
    Reclasse en doublons les lignes nouvelles déjà présentes dans le stockage.

    Args:
        kind: Type d'import.
        result: Partition intra-lot.
        entities: Entités transformées, alignées sur result.valid_data.
        existing: Enregistrements persistés candidats.

    Returns:
        Nouvelle partition ; les lignes reclassées ont duplicate_reason="existing".
    """
    existing_keys = {entity_key(kind, e) for e in existing}
    if not existing_keys:
        return result

    out = DedupResult(duplicates=list(result.duplicates))
    for rec, entity in zip(result.valid_data, entities):
        if entity_key(kind, entity) in existing_keys:
            rec.is_duplicate = True
            rec.duplicate_reason = "existing"
            out.duplicates.append(rec)
        else:
            out.valid_data.append(rec)

    moved = len(result.valid_data) - len(out.valid_data)
    if moved:
        logger.info("%d ligne(s) déjà présente(s) dans le stockage", moved)
    out.duplicates.sort(key=lambda r: r.source_row_number)
    return out
