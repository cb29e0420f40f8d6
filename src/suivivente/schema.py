"""Schémas canoniques des imports (colonnes requises par type d'import)."""

from __future__ import annotations

from typing import Literal

from suivivente.config import ConfigError

ImportKind = Literal["sales", "stock"]

VALID_KINDS: frozenset[str] = frozenset({"sales", "stock"})

SALES_COLUMNS: tuple[str, ...] = ("CAISSE", "PRODUIT", "TYPES", "QUANTITE", "MONTANT", "VENDEUR", "DATE")
STOCK_COLUMNS: tuple[str, ...] = ("PRODUIT", "TYPES", "QUANTITE")

# Colonne du fichier -> champ de l'entité, pour la clé de doublon sur données persistées
SALES_FIELD_MAP: dict[str, str] = {
    "CAISSE": "register",
    "PRODUIT": "product",
    "TYPES": "category",
    "QUANTITE": "quantity",
    "MONTANT": "total",
    "VENDEUR": "seller",
    "DATE": "date",
}
STOCK_FIELD_MAP: dict[str, str] = {
    "PRODUIT": "name",
    "TYPES": "category",
    "QUANTITE": "current_stock",
}

# Lignes d'exemple du modèle téléchargeable
SALES_EXAMPLES: list[dict[str, object]] = [
    {
        "CAISSE": "Caisse 1",
        "PRODUIT": "Coca-Cola",
        "TYPES": "Boissons",
        "QUANTITE": 5,
        "MONTANT": 14.00,
        "VENDEUR": "Jean",
        "DATE": "2024-01-15",
    },
    {
        "CAISSE": "Caisse 2",
        "PRODUIT": "Sandwich Jambon",
        "TYPES": "Alimentation",
        "QUANTITE": 2,
        "MONTANT": 9.00,
        "VENDEUR": "Sophie",
        "DATE": "2024-01-15",
    },
]
STOCK_EXAMPLES: list[dict[str, object]] = [
    {"PRODUIT": "Coca-Cola", "TYPES": "Boissons", "QUANTITE": 100},
    {"PRODUIT": "Sandwich Jambon", "TYPES": "Alimentation", "QUANTITE": 50},
]


def check_kind(kind: str) -> ImportKind:
    """Valide un type d'import et le retourne."""
    if kind not in VALID_KINDS:
        raise ConfigError(f"Type d'import invalide: {kind!r}. Valides: {sorted(VALID_KINDS)}")
    return kind  # type: ignore[return-value]


def columns_for(kind: str) -> tuple[str, ...]:
    """Colonnes requises pour un type d'import."""
    return SALES_COLUMNS if check_kind(kind) == "sales" else STOCK_COLUMNS


def field_map_for(kind: str) -> dict[str, str]:
    return SALES_FIELD_MAP if check_kind(kind) == "sales" else STOCK_FIELD_MAP


def examples_for(kind: str) -> list[dict[str, object]]:
    return SALES_EXAMPLES if check_kind(kind) == "sales" else STOCK_EXAMPLES
