"""Décodage des fichiers importés (Excel, CSV) en lignes brutes."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from suivivente.config import SuiviVenteError
from suivivente.normalize import cell_text, is_blank, strip_quotes

logger = logging.getLogger(__name__)

# Formats supportés
SUPPORTED_INPUT_EXTENSIONS = (".xlsx", ".xls", ".csv")
UNSUPPORTED_FORMAT_MESSAGE = "Format de fichier non pris en charge. Utilisez Excel (.xlsx, .xls) ou CSV."
NO_DATA_MESSAGE = "Le fichier ne contient aucune donnée"

RawRecord = dict[str, Any]


class DecodeError(SuiviVenteError):
    """Fichier illisible ou sans données."""


class UnsupportedFormatError(DecodeError):
    """Extension de fichier non prise en charge."""


@dataclass
class DecodedFile:
    """Résultat du décodage : lignes brutes et informations de diagnostic."""

    filename: str
    records: list[RawRecord]
    headers: list[str] = field(default_factory=list)
    delimiter: str | None = None  # CSV uniquement
    sheet_name: str | None = None  # Excel uniquement

    @property
    def row_count(self) -> int:
        return len(self.records)

    def sample(self, n: int = 2) -> list[RawRecord]:
        return self.records[:n]


def _get_engine(path: Path) -> str | None:
    """Retourne le moteur pandas selon l'extension, ou None pour auto."""
    suffix = path.suffix.lower()
    if suffix == ".xlsx":
        return "openpyxl"
    if suffix == ".xls":
        return "xlrd"
    return None


def check_extension(filename: str | Path) -> str:
    """
    Vérifie l'extension du fichier avant décodage.

    Returns:
        L'extension en minuscules.

    Raises:
        UnsupportedFormatError: Si l'extension n'est pas .xlsx, .xls ou .csv.
    """
    suffix = Path(filename).suffix.lower()
    if suffix not in SUPPORTED_INPUT_EXTENSIONS:
        raise UnsupportedFormatError(UNSUPPORTED_FORMAT_MESSAGE)
    return suffix


def detect_csv_delimiter(header_line: str) -> str:
    """Point-virgule s'il apparaît dans l'en-tête, sinon tabulation, sinon virgule."""
    if ";" in header_line:
        return ";"
    if "\t" in header_line:
        return "\t"
    return ","


def _decode_text(content: bytes | str) -> str:
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("Contenu non UTF-8, relecture en latin-1")
        return content.decode("latin-1")


def _py_value(val: Any) -> Any:
    """Convertit les scalaires numpy en types Python et les cellules vides en ""."""
    if is_blank(val):
        return ""
    if isinstance(val, np.generic):
        return val.item()
    return val


def decode_csv(content: bytes | str, filename: str = "data.csv") -> DecodedFile:
    """
    Décode un contenu CSV.

    Lignes vides ignorées, séparateur détecté sur la ligne d'en-tête. Les
    guillemets ne protègent pas le séparateur : chaque ligne est découpée sur
    le séparateur puis les guillemets de bord sont retirés. Champs manquants complétés par "" et champs
    surnuméraires ignorés. Une ligne n'est gardée que si un champ est non vide.

    Raises:
        DecodeError: Si aucune ligne de données n'est trouvée.
    """
    text = _decode_text(content)
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise DecodeError(NO_DATA_MESSAGE)

    delimiter = detect_csv_delimiter(lines[0])
    n_fields = len(lines[0].split(delimiter))

    try:
        df = pd.read_csv(
            io.StringIO("\n".join(lines)),
            sep=delimiter,
            header=None,
            names=list(range(n_fields)),
            dtype=str,
            quoting=csv.QUOTE_NONE,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
            on_bad_lines=lambda bad: bad[:n_fields],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise DecodeError(f"Erreur lors du traitement du fichier: {e}") from e

    df = df.fillna("")
    rows = df.values.tolist()
    headers = [strip_quotes(str(h)) for h in rows[0]]

    records: list[RawRecord] = []
    for values in rows[1:]:
        cleaned = ["" if is_blank(v) else strip_quotes(str(v)) for v in values]
        record = {h: (cleaned[i] if i < len(cleaned) else "") for i, h in enumerate(headers)}
        if any(v != "" for v in record.values()):
            records.append(record)

    if not records:
        raise DecodeError(NO_DATA_MESSAGE)

    logger.debug("CSV %s: séparateur %r, %d ligne(s), en-têtes %s", filename, delimiter, len(records), headers)
    return DecodedFile(filename=filename, records=records, headers=headers, delimiter=delimiter)


def decode_excel(content: bytes, filename: str = "data.xlsx") -> DecodedFile:
    """
    Décode un classeur Excel : première feuille uniquement, en-têtes = première ligne.

    Les types natifs des cellules sont conservés (nombres, dates).

    Raises:
        DecodeError: Si le classeur est illisible ou ne contient aucune ligne.
    """
    path = Path(filename)
    engine = _get_engine(path)
    try:
        xl = pd.ExcelFile(io.BytesIO(content), engine=engine) if engine else pd.ExcelFile(io.BytesIO(content))
        sheet_name = str(xl.sheet_names[0])
        df = pd.read_excel(xl, sheet_name=xl.sheet_names[0], dtype=object, header=0)
    except ImportError as e:
        if path.suffix.lower() == ".xls":
            raise DecodeError(f"Format .xls requis: pip install xlrd. Détail: {e}") from e
        raise DecodeError(f"Impossible de lire {filename}: {e}") from e
    except Exception as e:
        raise DecodeError(f"Erreur lors du traitement du fichier: {e}") from e

    df = df.dropna(how="all")
    headers = [cell_text(c) for c in df.columns]
    records: list[RawRecord] = []
    for values in df.itertuples(index=False, name=None):
        record = {h: _py_value(v) for h, v in zip(headers, values)}
        if any(v != "" for v in record.values()):
            records.append(record)

    if not records:
        raise DecodeError(NO_DATA_MESSAGE)

    logger.debug("Excel %s: feuille %r, %d ligne(s)", filename, sheet_name, len(records))
    return DecodedFile(filename=filename, records=records, headers=headers, sheet_name=sheet_name)


def decode_file(content: bytes | str, filename: str) -> DecodedFile:
    """
    Décode le contenu d'un fichier importé selon son extension.

    Args:
        content: Contenu binaire (ou texte pour un CSV).
        filename: Nom du fichier, utilisé pour l'extension.

    Returns:
        DecodedFile avec une ligne brute par ligne de données.

    Raises:
        UnsupportedFormatError: Extension non prise en charge.
        DecodeError: Fichier vide ou illisible.
    """
    suffix = check_extension(filename)
    if suffix == ".csv":
        decoded = decode_csv(content, filename)
    else:
        if isinstance(content, str):
            raise DecodeError(f"Contenu binaire attendu pour {filename}")
        decoded = decode_excel(content, filename)
    logger.info("%s: %d ligne(s) décodée(s)", filename, decoded.row_count)
    logger.debug("Échantillon: %s", decoded.sample())
    return decoded


def load_file(filepath: str | Path) -> DecodedFile:
    """
    Lit un fichier sur disque puis le décode.

    Raises:
        DecodeError: Si le fichier est absent, illisible ou vide.
    """
    path = Path(filepath)
    check_extension(path)
    if not path.exists():
        raise DecodeError(f"Fichier introuvable: {path}")
    try:
        content = path.read_bytes()
    except OSError as e:
        raise DecodeError(f"Impossible de lire {path}: {e}") from e
    return decode_file(content, path.name)


def save_xlsx(
    filepath: str | Path | io.BytesIO,
    dataframes: dict[str, pd.DataFrame],
    *,
    header: bool = True,
    index: bool = False,
) -> None:
    """
    Sauvegarde plusieurs DataFrames dans un fichier xlsx (une feuille par DataFrame).

    Args:
        filepath: Chemin de sortie ou tampon binaire.
        dataframes: Dict {nom_feuille: DataFrame}.
    """
    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        for sheet_name, df in dataframes.items():
            # Nettoyer le nom de feuille (Excel limite à 31 caractères)
            safe_name = str(sheet_name)[:31]
            df.to_excel(writer, sheet_name=safe_name, index=index, header=header)
