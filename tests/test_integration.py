"""Test d'intégration de l'import SuiviVente (modèle, aperçu, import, rapport)."""

import json
from pathlib import Path

import pandas as pd

from suivivente.cli import cmd_import, cmd_preview, main
from suivivente.store import MemoryRecordStore


def test_full_import_with_report(tmp_path: Path) -> None:
    """Exécute l'import complet d'un classeur créé à la volée et écrit le rapport."""
    src = tmp_path / "ventes.xlsx"
    config_path = tmp_path / "config.json"
    report_path = tmp_path / "rapport.xlsx"

    df = pd.DataFrame(
        {
            "Caisse": ["Caisse 1", "Caisse 2", "Caisse 1", ""],
            "Produit": ["Coca-Cola", "Sandwich Jambon", "Coca-Cola", "Eau"],
            "Types": ["Boissons", "Alimentation", "Boissons", "Boissons"],
            "Quantité": [5, 2, 5, 3],
            "Montant": ["14,00", "9,00", "14,00", "3,00"],
            "Vendeur": ["Jean", "Sophie", "Jean", "Jean"],
            "Date": ["15/03/2023", "15/03/2023", "15/03/2023", "16/03/2023"],
        }
    )
    df.to_excel(src, index=False, engine="openpyxl")
    config_path.write_text(json.dumps({"default_register": "Caisse principale"}), encoding="utf-8")

    store = MemoryRecordStore(
        [
            {"name": "Coca-Cola", "current_stock": 100},
            {"name": "Sandwich Jambon", "current_stock": 50},
        ]
    )
    exit_code = cmd_import(
        str(src),
        "sales",
        config_path=str(config_path),
        report_path=str(report_path),
        store=store,
    )

    assert exit_code == 0
    assert len(store.sales) == 3
    assert store.sales[2]["register"] == "Caisse principale"
    assert store.products["Coca-Cola"]["current_stock"] == 95
    assert store.products["Sandwich Jambon"]["current_stock"] == 48

    assert report_path.exists()
    xl = pd.ExcelFile(report_path, engine="openpyxl")
    assert xl.sheet_names == ["REPORT", "APERCU", "AVERTISSEMENTS"]
    report = pd.read_excel(xl, sheet_name="REPORT")
    assert report[report["Key"] == "nb_imported"]["Value"].values[0] == 3
    apercu = pd.read_excel(xl, sheet_name="APERCU")
    assert apercu["statut"].tolist() == ["nouvelle", "nouvelle", "doublon", "nouvelle"]


def test_preview_then_import_csv(tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    """Aperçu sans écriture, puis import, puis ré-import entièrement en doublons."""
    src = tmp_path / "stock.csv"
    src.write_text("PRODUIT;TYPES;QUANTITE\nCoca-Cola;Boissons;100\nChips;Snacks;30\n", encoding="utf-8")
    preview_path = tmp_path / "apercu.xlsx"
    store = MemoryRecordStore()

    assert cmd_preview(str(src), "stock", output_path=str(preview_path), store=store) == 0
    assert store.products == {}
    assert pd.ExcelFile(preview_path, engine="openpyxl").sheet_names == ["APERCU", "AVERTISSEMENTS", "REPORT"]

    assert cmd_import(str(src), "stock", store=store) == 0
    assert set(store.products) == {"Coca-Cola", "Chips"}

    assert cmd_import(str(src), "stock", store=store) == 0
    out = capsys.readouterr().out
    assert "0 article(s) importé(e)(s), 2 doublon(s) ignoré(s)" in out


def test_import_errors_exit_code(tmp_path: Path) -> None:
    src = tmp_path / "ventes.csv"
    src.write_text(
        "CAISSE;PRODUIT;TYPES;QUANTITE;MONTANT;VENDEUR;DATE\nCaisse 1;Chips;Snacks;1;1,50;Jean;15/03/2023\n",
        encoding="utf-8",
    )
    store = MemoryRecordStore(fail_products={"Chips"})
    assert cmd_import(str(src), "sales", store=store) == 1


def test_cli_template_then_dry_run(tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    template = tmp_path / "modele.xlsx"
    assert main(["template", "--kind", "sales", "-o", str(template)]) == 0
    assert template.exists()

    assert main(["import", str(template), "--store", "memory", "--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "Mode dry-run" in out
    assert "Aperçu:" in out
