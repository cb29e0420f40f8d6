"""Normalisation de texte : en-têtes de colonnes et valeurs de cellules."""

from __future__ import annotations

import math
import re
import unicodedata
from datetime import date, datetime
from typing import Any


def _remove_diacritics(s: str) -> str:
    """Retire les diacritiques (accents) d'une chaîne."""
    nfd = unicodedata.normalize("NFD", s)
    return "".join(c for c in nfd if unicodedata.category(c) != "Mn")


def is_blank(val: Any) -> bool:
    """True pour None, NaN/NaT et les chaînes vides (après strip)."""
    if val is None:
        return True
    if isinstance(val, float) and math.isnan(val):
        return True
    if isinstance(val, str):
        return val.strip() == ""
    # pd.NaT et pd.NA ne sont pas égaux à eux-mêmes
    try:
        return bool(val != val)
    except (TypeError, ValueError):
        return False


def cell_text(val: Any) -> str:
    """
    Convertit une valeur de cellule en chaîne.

    Les flottants entiers s'écrivent sans décimale (14.0 -> "14") et les dates
    au format ISO, pour que la même valeur donne le même texte qu'elle vienne
    d'un CSV ou d'un classeur Excel.
    """
    if is_blank(val):
        return ""
    if isinstance(val, bool):
        return str(val).lower()
    if isinstance(val, float):
        if math.isinf(val):
            return ""
        if val.is_integer():
            return str(int(val))
        return repr(val)
    if isinstance(val, datetime):
        if (val.hour, val.minute, val.second, val.microsecond) == (0, 0, 0, 0):
            return val.date().isoformat()
        return val.isoformat()
    if isinstance(val, date):
        return val.isoformat()
    return str(val)


def norm_header(s: Any) -> str:
    """
    Normalise un nom de colonne pour comparaison.

    NFD, suppression des diacritiques, majuscules, strip :
    "Produit ", "PRODUIT" et "Pröduit" donnent tous "PRODUIT".
    """
    return _remove_diacritics(cell_text(s)).upper().strip()


def norm_text(
    s: Any,
    *,
    lower: bool = True,
    strip: bool = True,
    remove_diacritics: bool = False,
    collapse_spaces: bool = False,
) -> str:
    """
    Normalise une valeur de cellule.

    Args:
        s: Valeur à normaliser (convertie via cell_text).
        lower: Mettre en minuscules.
        strip: Supprimer espaces en début/fin.
        remove_diacritics: Supprimer les accents.
        collapse_spaces: Espaces multiples -> espace simple.

    Returns:
        Chaîne normalisée.
    """
    text = cell_text(s)
    if collapse_spaces:
        text = re.sub(r"\s+", " ", text)
    if strip:
        text = text.strip()
    if lower:
        text = text.lower()
    if remove_diacritics:
        text = _remove_diacritics(text)
    return text


def strip_quotes(field: str) -> str:
    """Retire un guillemet simple ou double en début et en fin de champ, puis les espaces."""
    text = field.strip()
    text = re.sub(r"^[\"']", "", text)
    text = re.sub(r"[\"']$", "", text)
    return text.strip()
