"""Tests de normalisation."""

from datetime import date, datetime

from suivivente.normalize import cell_text, is_blank, norm_header, norm_text, strip_quotes


def test_norm_header_accents_case_spaces() -> None:
    # Tous ces en-têtes désignent la même colonne
    for header in ["produit", "Produit", "Prôduit ", "PRODUIT ", " Pröduit"]:
        assert norm_header(header) == "PRODUIT"


def test_norm_header_keeps_inner_spaces() -> None:
    assert norm_header("  prix unitaire ") == "PRIX UNITAIRE"


def test_norm_header_quantite() -> None:
    assert norm_header("Quantité") == "QUANTITE"
    assert norm_header("quantite") == norm_header("QUANTITÉ")


def test_norm_text_basic() -> None:
    assert norm_text("  Coca-Cola  ") == "coca-cola"
    assert norm_text("  ABC  ", lower=False) == "ABC"


def test_norm_text_options() -> None:
    assert norm_text("a\t\n  b", collapse_spaces=True) == "a b"
    assert norm_text("Café", remove_diacritics=True) == "cafe"


def test_norm_text_none_nan() -> None:
    assert norm_text(None) == ""
    assert norm_text(float("nan")) == ""


def test_cell_text_numbers() -> None:
    assert cell_text(14.0) == "14"
    assert cell_text(2.5) == "2.5"
    assert cell_text(5) == "5"


def test_cell_text_dates() -> None:
    assert cell_text(datetime(2023, 3, 15)) == "2023-03-15"
    assert cell_text(date(2023, 3, 15)) == "2023-03-15"
    assert cell_text(datetime(2023, 3, 15, 10, 30)) == "2023-03-15T10:30:00"


def test_is_blank() -> None:
    assert is_blank(None)
    assert is_blank("   ")
    assert is_blank(float("nan"))
    assert not is_blank(0)
    assert not is_blank("0")


def test_strip_quotes() -> None:
    assert strip_quotes('"Coca"') == "Coca"
    assert strip_quotes("'Coca'") == "Coca"
    assert strip_quotes(' "Coca" ') == "Coca"
    assert strip_quotes("L'eau") == "L'eau"
