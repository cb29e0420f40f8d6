"""Tests du décodage des fichiers (CSV, Excel)."""

import io
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from suivivente.io_excel import (
    DecodeError,
    UnsupportedFormatError,
    check_extension,
    decode_csv,
    decode_file,
    detect_csv_delimiter,
    load_file,
    save_xlsx,
)

SALES_HEADER = "CAISSE;PRODUIT;TYPES;QUANTITE;MONTANT;VENDEUR;DATE"


def _xlsx_bytes(sheets: dict[str, pd.DataFrame]) -> bytes:
    buf = io.BytesIO()
    save_xlsx(buf, sheets)
    return buf.getvalue()


def test_detect_csv_delimiter() -> None:
    assert detect_csv_delimiter(SALES_HEADER) == ";"
    assert detect_csv_delimiter("PRODUIT\tTYPES\tQUANTITE") == "\t"
    assert detect_csv_delimiter("PRODUIT,TYPES,QUANTITE") == ","
    # Le point-virgule est prioritaire sur la tabulation
    assert detect_csv_delimiter("A;B\tC") == ";"


def test_csv_semicolon_keeps_commas_in_fields() -> None:
    content = f"{SALES_HEADER}\nCaisse 1;Coca, Zero;Boissons;5;14,00;Jean;15/03/2023\n"
    decoded = decode_csv(content, "ventes.csv")
    assert decoded.delimiter == ";"
    assert decoded.row_count == 1
    row = decoded.records[0]
    assert row["PRODUIT"] == "Coca, Zero"
    assert row["MONTANT"] == "14,00"
    assert row["DATE"] == "15/03/2023"
    assert list(row.keys()) == SALES_HEADER.split(";")


def test_csv_tab_and_comma_delimiters() -> None:
    tab = decode_csv("PRODUIT\tQUANTITE\nCoca\t5\n")
    assert tab.delimiter == "\t"
    assert tab.records == [{"PRODUIT": "Coca", "QUANTITE": "5"}]

    comma = decode_csv("PRODUIT,QUANTITE\nCoca,5\n")
    assert comma.delimiter == ","
    assert comma.records == [{"PRODUIT": "Coca", "QUANTITE": "5"}]


def test_csv_strips_quotes_and_spaces() -> None:
    content = "\"PRODUIT\";'QUANTITE' ; TYPES\n\"Coca\";'5'; Boissons \n"
    decoded = decode_csv(content)
    assert decoded.headers == ["PRODUIT", "QUANTITE", "TYPES"]
    assert decoded.records == [{"PRODUIT": "Coca", "QUANTITE": "5", "TYPES": "Boissons"}]


def test_csv_unbalanced_quote_stays_on_its_line() -> None:
    """Un guillemet ouvrant sans fermeture ne déborde pas sur les lignes suivantes."""
    content = (
        f"{SALES_HEADER}\n"
        'Caisse 1;"Pizza 30cm;Plats;1;9,00;Jean;15/03/2023\n'
        "Caisse 2;Coca;Boissons;5;14,00;Sophie;15/03/2023\n"
        "Caisse 1;Sandwich;Alimentation;2;9,00;Jean;16/03/2023\n"
    )
    decoded = decode_csv(content, "ventes.csv")
    assert decoded.row_count == 3
    assert decoded.records[0]["PRODUIT"] == "Pizza 30cm"
    assert decoded.records[0]["TYPES"] == "Plats"
    assert decoded.records[2]["PRODUIT"] == "Sandwich"


def test_csv_quotes_do_not_protect_delimiter() -> None:
    """Le séparateur découpe aussi l'intérieur d'un champ entre guillemets."""
    decoded = decode_csv('CAISSE;PRODUIT\nC1;"a;b"\n')
    assert decoded.records == [{"CAISSE": "C1", "PRODUIT": "a"}]


def test_csv_skips_blank_and_empty_lines() -> None:
    content = "PRODUIT;QUANTITE\n\n   \nCoca;5\n;\nSandwich;2\n"
    decoded = decode_csv(content)
    assert [r["PRODUIT"] for r in decoded.records] == ["Coca", "Sandwich"]


def test_csv_short_and_long_rows() -> None:
    content = "A;B;C\n1;2\n4;5;6;7\n"
    decoded = decode_csv(content)
    assert decoded.records[0] == {"A": "1", "B": "2", "C": ""}
    assert decoded.records[1] == {"A": "4", "B": "5", "C": "6"}


def test_csv_bom_and_latin1() -> None:
    utf8 = "\ufeffPRODUIT;QUANTITE\nCafé;3\n".encode("utf-8")
    assert decode_csv(utf8).records == [{"PRODUIT": "Café", "QUANTITE": "3"}]

    latin1 = "PRODUIT;QUANTITE\nCafé;3\n".encode("latin-1")
    assert decode_csv(latin1).records == [{"PRODUIT": "Café", "QUANTITE": "3"}]


def test_csv_header_only_raises() -> None:
    with pytest.raises(DecodeError, match="aucune donnée"):
        decode_file(f"{SALES_HEADER}\n".encode(), "ventes.csv")


def test_csv_empty_raises() -> None:
    with pytest.raises(DecodeError, match="aucune donnée"):
        decode_file(b"", "vide.csv")
    with pytest.raises(DecodeError):
        decode_file(b"\n\n  \n", "vide.csv")


def test_unsupported_extension() -> None:
    with pytest.raises(UnsupportedFormatError, match=r"\.xlsx, \.xls"):
        decode_file(b"data", "ventes.txt")
    assert check_extension("VENTES.CSV") == ".csv"
    assert check_extension("stock.XLSX") == ".xlsx"


def test_excel_first_sheet_only() -> None:
    content = _xlsx_bytes(
        {
            "Ventes": pd.DataFrame({"PRODUIT": ["Coca", "Sandwich"], "QUANTITE": [5, 2]}),
            "Autre": pd.DataFrame({"x": [1, 2, 3]}),
        }
    )
    decoded = decode_file(content, "ventes.xlsx")
    assert decoded.sheet_name == "Ventes"
    assert decoded.row_count == 2
    assert decoded.headers == ["PRODUIT", "QUANTITE"]
    assert decoded.records[0]["PRODUIT"] == "Coca"
    assert decoded.records[1]["QUANTITE"] == 2


def test_excel_native_types_and_blank_cells() -> None:
    df = pd.DataFrame(
        {
            "Produit ": ["Coca", None],
            "DATE": [datetime(2023, 3, 15), None],
            "MONTANT": [14.5, None],
        }
    )
    df.loc[2] = ["Sandwich", None, 9.0]
    decoded = decode_file(_xlsx_bytes({"Feuille1": df}), "ventes.xlsx")
    # La ligne entièrement vide est ignorée
    assert decoded.row_count == 2
    first = decoded.records[0]
    assert first["Produit "] == "Coca"
    assert isinstance(first["DATE"], datetime)
    assert first["MONTANT"] == 14.5
    assert decoded.records[1]["DATE"] == ""


def test_excel_corrupt_raises() -> None:
    with pytest.raises(DecodeError, match="Erreur lors du traitement"):
        decode_file(b"ceci n'est pas un classeur", "ventes.xlsx")


def test_excel_header_only_raises() -> None:
    content = _xlsx_bytes({"Feuille1": pd.DataFrame(columns=["PRODUIT", "QUANTITE"])})
    with pytest.raises(DecodeError, match="aucune donnée"):
        decode_file(content, "stock.xlsx")


def test_load_file(tmp_path: Path) -> None:
    path = tmp_path / "stock.csv"
    path.write_text("PRODUIT;TYPES;QUANTITE\nCoca;Boissons;100\n", encoding="utf-8")
    decoded = load_file(path)
    assert decoded.filename == "stock.csv"
    assert decoded.sample(1) == [{"PRODUIT": "Coca", "TYPES": "Boissons", "QUANTITE": "100"}]


def test_load_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(DecodeError, match="introuvable"):
        load_file(tmp_path / "inexistant.xlsx")
