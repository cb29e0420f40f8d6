"""Modèles d'import téléchargeables (en-têtes du schéma + lignes d'exemple)."""

from __future__ import annotations

import io
from pathlib import Path

import pandas as pd

from suivivente.config import ConfigError
from suivivente.io_excel import save_xlsx
from suivivente.schema import check_kind, columns_for, examples_for

TEMPLATE_SHEET = "Template"
TEMPLATE_FILENAMES = {
    "sales": "template_import_ventes.xlsx",
    "stock": "template_import_stock.xlsx",
}


def template_filename(kind: str) -> str:
    return TEMPLATE_FILENAMES[check_kind(kind)]


def build_template(kind: str) -> pd.DataFrame:
    """DataFrame modèle ; les colonnes viennent du schéma, dans son ordre."""
    columns = list(columns_for(kind))
    return pd.DataFrame(examples_for(kind), columns=columns)


def template_bytes(kind: str, fmt: str = "xlsx") -> bytes:
    """Contenu du modèle en xlsx ou en CSV (séparateur ";")."""
    df = build_template(kind)
    if fmt == "csv":
        return df.to_csv(index=False, sep=";").encode("utf-8")
    if fmt != "xlsx":
        raise ConfigError(f"Format de modèle invalide: {fmt!r}. Valides: ['csv', 'xlsx']")
    buf = io.BytesIO()
    save_xlsx(buf, {TEMPLATE_SHEET: df})
    return buf.getvalue()


def write_template(kind: str, filepath: str | Path | None = None) -> Path:
    """
    Écrit le modèle sur disque (format déduit de l'extension, xlsx par défaut).

    Returns:
        Chemin du fichier écrit.
    """
    path = Path(filepath) if filepath else Path(template_filename(kind))
    fmt = "csv" if path.suffix.lower() == ".csv" else "xlsx"
    path.write_bytes(template_bytes(kind, fmt))
    return path
