"""Configuration de l'import et hiérarchie d'erreurs."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class SuiviVenteError(Exception):
    """Exception de base pour SuiviVente."""


class ConfigError(SuiviVenteError, ValueError):
    """Erreur de validation de la configuration."""


class ConfigFileError(SuiviVenteError):
    """Erreur de chargement du fichier de configuration (fichier absent, JSON invalide)."""


class StoreError(SuiviVenteError):
    """Erreur remontée par la couche de stockage."""


@dataclass
class ImportConfig:
    """Paramètres du pipeline d'import."""

    batch_size: int = 50
    default_register: str = "Import"
    default_category: str = "Non spécifié"
    cross_batch_dedup: bool = True
    strict_required_fields: bool = False
    stock_threshold: int = 10

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ImportConfig:
        try:
            batch_size = int(d.get("batch_size", 50))
            stock_threshold = int(d.get("stock_threshold", 10))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Valeur numérique invalide: {e}") from e

        if batch_size < 1:
            raise ConfigError(f"batch_size doit être >= 1 (got {batch_size})")
        if stock_threshold < 0:
            raise ConfigError(f"stock_threshold doit être >= 0 (got {stock_threshold})")

        default_register = str(d.get("default_register", "Import")).strip()
        if not default_register:
            raise ConfigError("default_register ne peut pas être vide")

        return cls(
            batch_size=batch_size,
            default_register=default_register,
            default_category=str(d.get("default_category", "Non spécifié")),
            cross_batch_dedup=bool(d.get("cross_batch_dedup", True)),
            strict_required_fields=bool(d.get("strict_required_fields", False)),
            stock_threshold=stock_threshold,
        )

    @classmethod
    def load(cls, path: str | Path) -> ImportConfig:
        """
        Charge la configuration depuis un fichier JSON.

        Raises:
            ConfigFileError: Si le fichier est absent ou le JSON invalide.
            ConfigError: Si la configuration est invalide.
        """
        path = Path(path).resolve()
        if not path.exists():
            raise ConfigFileError(f"Fichier de configuration introuvable: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                d = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigFileError(f"JSON invalide dans {path}: {e}") from e
        except OSError as e:
            raise ConfigFileError(f"Impossible de lire {path}: {e}") from e

        if not isinstance(d, dict):
            raise ConfigFileError(f"Fichier de configuration invalide: {path} doit contenir un objet JSON")

        return cls.from_dict(d)
