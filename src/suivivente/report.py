"""Génération du rapport d'import (onglets REPORT et APERCU, résumé console)."""

from __future__ import annotations

from datetime import datetime

import pandas as pd

from suivivente import __version__
from suivivente.config import ImportConfig
from suivivente.pipeline import ImportOutcome, ImportPreview


def build_preview_df(preview: ImportPreview) -> pd.DataFrame:
    """
    Une ligne par ligne du fichier, avec son statut (nouvelle / doublon).

    Les valeurs suivent, dans l'ordre des colonnes du fichier.
    """
    rows = []
    for rec in preview.records:
        status = "nouvelle"
        if rec.is_duplicate:
            status = "doublon (existant)" if rec.duplicate_reason == "existing" else "doublon"
        row = {"ligne": rec.source_row_number, "statut": status}
        if rec.duplicate_of is not None:
            row["doublon_de"] = rec.duplicate_of
        row.update(rec.values)
        rows.append(row)
    return pd.DataFrame(rows)


def build_warnings_df(preview: ImportPreview) -> pd.DataFrame:
    return pd.DataFrame(
        [{"ligne": w.row, "colonne": w.column, "valeur": str(w.value), "message": w.message} for w in preview.warnings],
        columns=["ligne", "colonne", "valeur", "message"],
    )


def build_report_df(
    outcome: ImportOutcome,
    preview: ImportPreview,
    config: ImportConfig,
) -> pd.DataFrame:
    """
    Construit le DataFrame pour l'onglet REPORT.

    Contient : nb lignes, nb importées, nb doublons, nb erreurs, totaux,
    paramètres, horodatage, version.
    """
    n_batch = sum(1 for r in preview.duplicates if r.duplicate_reason == "batch")
    n_existing = sum(1 for r in preview.duplicates if r.duplicate_reason == "existing")

    rows = [
        ("Metric", "Value"),
        ("file", preview.filename),
        ("kind", preview.kind),
        ("nb_rows", preview.row_count),
        ("nb_new", len(preview.valid_data)),
        ("nb_imported", outcome.success),
        ("nb_duplicates", outcome.duplicates),
        ("nb_duplicates_batch", n_batch),
        ("nb_duplicates_existing", n_existing),
        ("nb_errors", outcome.error_count),
        ("nb_warnings", len(outcome.warnings)),
        ("nb_stock_errors", len(outcome.stock_errors)),
        ("dry_run", outcome.dry_run),
        ("total_quantity", preview.totals.get("total_quantity", 0)),
        ("total_revenue", preview.totals.get("total_revenue", 0.0)),
        ("", ""),
        ("Parameters", ""),
        ("batch_size", config.batch_size),
        ("default_register", config.default_register),
        ("cross_batch_dedup", config.cross_batch_dedup),
        ("strict_required_fields", config.strict_required_fields),
    ]
    if outcome.errors:
        rows.append(("", ""))
        rows.append(("Errors", ""))
        rows.extend((f"error_{i}", msg) for i, msg in enumerate(outcome.errors))
    rows.extend(
        [
            ("", ""),
            ("timestamp", datetime.now().isoformat()),
            ("version", __version__),
        ]
    )

    return pd.DataFrame(rows, columns=["Key", "Value"])


def print_report_console(outcome: ImportOutcome, preview: ImportPreview | None = None) -> None:
    """Affiche un résumé de l'import en console."""
    print("\n=== SuiviVente Import ===")
    if preview is not None:
        print(f"  Fichier:          {preview.filename}")
        print(f"  Lignes lues:      {preview.row_count}")
        print(f"  Nouvelles:        {len(preview.valid_data)}")
        print(f"  Quantité totale:  {preview.totals.get('total_quantity', 0)}")
        if preview.kind == "sales":
            print(f"  Montant total:    {preview.totals.get('total_revenue', 0.0):.2f}")
    print(f"  Importées:        {outcome.success}")
    print(f"  Doublons:         {outcome.duplicates}")
    print(f"  Erreurs:          {outcome.error_count}")
    print(f"  Avertissements:   {len(outcome.warnings)}")
    for msg in outcome.errors:
        print(f"    - {msg}")
    for msg in outcome.stock_errors:
        print(f"    - {msg}")
    print(f"  Version:          {__version__}")
    print(f"  Timestamp:        {datetime.now().isoformat()}")
    print("=========================\n")
    print(outcome.message)
