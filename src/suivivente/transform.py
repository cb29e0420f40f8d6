"""Transformation des lignes validées en entités (ventes, articles de stock)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from suivivente.coerce import FieldCoercionWarning, format_date, parse_amount, parse_quantity
from suivivente.columns import NormalizedRecord
from suivivente.config import ImportConfig
from suivivente.normalize import cell_text, is_blank
from suivivente.schema import check_kind

Entity = dict[str, Any]


@dataclass
class TransformResult:
    """Entités prêtes pour le stockage, alignées sur les lignes d'entrée."""

    entities: list[Entity] = field(default_factory=list)
    warnings: list[FieldCoercionWarning] = field(default_factory=list)


def _text(row: NormalizedRecord, column: str) -> str:
    return cell_text(row.get(column)).strip()


def to_sale(
    row: NormalizedRecord,
    config: ImportConfig | None = None,
    warnings: list[FieldCoercionWarning] | None = None,
) -> Entity:
    """
    Convertit une ligne de vente.

    Le fichier fournit le total de la ligne : le prix unitaire en est déduit
    (total / quantité, 0 si la quantité est nulle).
    """
    config = config or ImportConfig()
    sink = warnings if warnings is not None else []
    n = row.source_row_number

    raw_qty = row.get("QUANTITE")
    quantity, msg = parse_quantity(raw_qty)
    if msg:
        sink.append(FieldCoercionWarning(n, "QUANTITE", raw_qty, msg))

    raw_total = row.get("MONTANT")
    total, msg = parse_amount(raw_total)
    if msg:
        sink.append(FieldCoercionWarning(n, "MONTANT", raw_total, msg))

    raw_date = row.get("DATE")
    sale_date = format_date(raw_date)
    if not sale_date:
        message = "date manquante" if is_blank(raw_date) else "date illisible"
        sink.append(FieldCoercionWarning(n, "DATE", raw_date, message))

    return {
        "date": sale_date,
        "product": _text(row, "PRODUIT"),
        "category": _text(row, "TYPES") or config.default_category,
        "subcategory": "",
        "price": total / quantity if quantity > 0 else 0.0,
        "quantity": quantity,
        "total": total,
        "seller": _text(row, "VENDEUR"),
        "register": _text(row, "CAISSE") or config.default_register,
    }


def to_stock_item(
    row: NormalizedRecord,
    config: ImportConfig | None = None,
    warnings: list[FieldCoercionWarning] | None = None,
) -> Entity:
    """Convertit une ligne d'inventaire en article (stock initial = stock courant)."""
    config = config or ImportConfig()
    sink = warnings if warnings is not None else []

    raw_qty = row.get("QUANTITE")
    quantity, msg = parse_quantity(raw_qty)
    if msg:
        sink.append(FieldCoercionWarning(row.source_row_number, "QUANTITE", raw_qty, msg))

    return {
        "name": _text(row, "PRODUIT"),
        "category": _text(row, "TYPES") or config.default_category,
        "subcategory": "",
        "initial_stock": quantity,
        "current_stock": quantity,
        "price": 0.0,
        "threshold": config.stock_threshold,
    }


def transform_records(
    kind: str,
    rows: Sequence[NormalizedRecord],
    config: ImportConfig | None = None,
) -> TransformResult:
    """Transforme les lignes selon le type d'import, en collectant les avertissements."""
    convert = to_sale if check_kind(kind) == "sales" else to_stock_item
    result = TransformResult()
    for row in rows:
        result.entities.append(convert(row, config, result.warnings))
    return result


def missing_required_fields(sale: Entity) -> list[str]:
    """Champs obligatoires vides d'une vente (contrôle strict)."""
    missing = [f for f in ("date", "product", "seller") if not sale.get(f)]
    missing.extend(f for f in ("quantity", "total") if not sale.get(f))
    return missing


def compute_totals(kind: str, entities: Sequence[Entity]) -> dict[str, float]:
    """Quantité totale et chiffre d'affaires (0 pour le stock) des entités."""
    if check_kind(kind) == "sales":
        return {
            "total_quantity": sum(e["quantity"] for e in entities),
            "total_revenue": sum(e["total"] for e in entities),
        }
    return {"total_quantity": sum(e["current_stock"] for e in entities), "total_revenue": 0.0}
