"""SuiviVente - Import et rapprochement de fichiers de ventes et de stock."""

from suivivente.config import ConfigError, ConfigFileError, StoreError, SuiviVenteError
from suivivente.columns import SchemaError
from suivivente.io_excel import DecodeError, UnsupportedFormatError

__all__ = [
    "__version__",
    "SuiviVenteError",
    "ConfigError",
    "ConfigFileError",
    "DecodeError",
    "SchemaError",
    "StoreError",
    "UnsupportedFormatError",
]

__version__ = "0.1.0"
