"""Conversion tolérante des valeurs de cellules (quantités, montants, dates)."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from suivivente.normalize import cell_text, is_blank

EXCEL_EPOCH = date(1899, 12, 30)

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_DATE_SPLIT = re.compile(r"[/\-.]")


@dataclass(frozen=True)
class FieldCoercionWarning:
    """Valeur remplacée par une valeur par défaut lors de la conversion."""

    row: int
    column: str
    value: Any
    message: str

    def __str__(self) -> str:
        return f"Ligne {self.row}, {self.column}: {self.message} ({self.value!r})"


def _is_number(val: Any) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def parse_quantity(val: Any) -> tuple[int, str | None]:
    """
    Entier en tête de la valeur ("12 pcs" -> 12, 5.0 -> 5), 0 à défaut.

    Returns:
        (quantité, message d'avertissement ou None)
    """
    if is_blank(val):
        return 0, None
    if _is_number(val):
        if isinstance(val, float) and not math.isfinite(val):
            return 0, "quantité non numérique"
        qty = int(val)
        if qty != val:
            return qty, "quantité décimale tronquée"
        return qty, None
    text = cell_text(val)
    m = _INT_PREFIX.match(text)
    if not m:
        return 0, "quantité non numérique"
    qty = int(m.group(1))
    if m.group(0) != text.rstrip():
        return qty, "quantité partiellement lue"
    return qty, None


def parse_amount(val: Any) -> tuple[float, str | None]:
    """
    Montant décimal, virgule acceptée comme séparateur ("14,00" -> 14.0), 0.0 à défaut.

    Returns:
        (montant, message d'avertissement ou None)
    """
    if is_blank(val):
        return 0.0, None
    if _is_number(val):
        amount = float(val)
        if not math.isfinite(amount):
            return 0.0, "montant non numérique"
        return amount, None
    text = cell_text(val).replace(",", ".", 1)
    m = _FLOAT_PREFIX.match(text)
    if not m:
        return 0.0, "montant non numérique"
    amount = float(m.group(1))
    if m.group(0) != text.rstrip():
        return amount, "montant partiellement lu"
    return amount, None


def _from_excel_serial(serial: float) -> date | None:
    if not math.isfinite(serial):
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=math.floor(serial))
    except OverflowError:
        return None


def _from_iso(text: str) -> date | None:
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _from_parts(text: str) -> date | None:
    """Jour/mois/année, ou année/mois/jour quand la première partie a 4 chiffres ("2023/03/15")."""
    parts = [p.strip() for p in _DATE_SPLIT.split(text)]
    if len(parts) != 3 or not all(p.isdecimal() for p in parts):
        return None
    if len(parts[0]) == 4:
        year, month, day = (int(p) for p in parts)
    else:
        day, month, year = (int(p) for p in parts)
    if year < 100:
        year = 1900 + year if year > 50 else 2000 + year
    if year <= 1900 or not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(val: Any) -> date | None:
    """
    Interprète une valeur de date.

    Accepte un numéro de série Excel (jours depuis le 1899-12-30), un objet
    date/datetime, une chaîne ISO ou une chaîne jour/mois/année (ou
    année/mois/jour) séparée par "/", "-" ou ".". Ne lève jamais d'erreur.
    """
    if is_blank(val):
        return None
    if _is_number(val):
        return _from_excel_serial(float(val))
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if not isinstance(val, str):
        return None
    text = val.strip()
    return _from_iso(text) or _from_parts(text)


def format_date(val: Any) -> str:
    """Date au format YYYY-MM-DD, chaîne vide si illisible."""
    d = parse_date(val)
    return d.isoformat() if d is not None else ""
