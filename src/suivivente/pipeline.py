"""Pipeline d'import : décodage, normalisation, dédoublonnage, transformation, enregistrement."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from suivivente.coerce import FieldCoercionWarning
from suivivente.columns import ClassifiedRecord, normalize_columns
from suivivente.config import ImportConfig, StoreError
from suivivente.dedup import DedupResult, classify_records, mark_existing
from suivivente.io_excel import DecodeError, decode_file
from suivivente.schema import ImportKind, check_kind, columns_for, field_map_for
from suivivente.store import RecordStore
from suivivente.transform import Entity, compute_totals, missing_required_fields, transform_records

logger = logging.getLogger(__name__)

AUDIT_ACTIONS = {"sales": "import_sales", "stock": "import_stock"}


@dataclass
class ImportPreview:
    """Résultat du mode dry-run (étapes 1 à 3), à valider avant enregistrement."""

    kind: ImportKind
    filename: str
    valid_data: list[ClassifiedRecord] = field(default_factory=list)
    duplicates: list[ClassifiedRecord] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)  # alignées sur valid_data
    warnings: list[FieldCoercionWarning] = field(default_factory=list)
    totals: dict[str, float] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)

    @property
    def records(self) -> list[ClassifiedRecord]:
        """Toutes les lignes classées, dans l'ordre du fichier."""
        return DedupResult(self.valid_data, self.duplicates).records

    @property
    def row_count(self) -> int:
        return len(self.valid_data) + len(self.duplicates)


@dataclass(frozen=True)
class ImportOutcome:
    """Bilan d'un import, immuable une fois retourné."""

    kind: str
    success: int
    duplicates: int
    errors: tuple[str, ...] = ()
    warnings: tuple[FieldCoercionWarning, ...] = ()
    stock_errors: tuple[str, ...] = ()
    dry_run: bool = False

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def message(self) -> str:
        noun = "vente(s)" if self.kind == "sales" else "article(s)"
        if self.dry_run:
            return f"Aperçu: {self.duplicates} doublon(s) détecté(s), aucun enregistrement effectué."
        text = f"Import réussi! {self.success} {noun} importé(e)(s), {self.duplicates} doublon(s) ignoré(s)."
        if self.errors:
            text += f" {self.error_count} erreur(s)."
        return text


class ImportPipeline:
    """
    Orchestration d'un import pour un RecordStore injecté.

    preview() n'écrit rien ; commit() enregistre les lignes nouvelles d'un
    aperçu et ne lève pas d'exception pour les erreurs de stockage, qui sont
    reportées dans ImportOutcome.errors.
    """

    def __init__(self, store: RecordStore, config: ImportConfig | None = None) -> None:
        self.store = store
        self.config = config or ImportConfig()

    def preview(self, content: bytes | str, filename: str, kind: str) -> ImportPreview:
        """
        Décode, normalise et classe les lignes d'un fichier.

        Raises:
            DecodeError: Fichier illisible, vide ou format non supporté.
            SchemaError: Colonnes requises absentes.
        """
        kind = check_kind(kind)
        decoded = decode_file(content, filename)
        rows = normalize_columns(decoded.records, kind)
        if not rows:
            raise DecodeError("Le fichier ne contient aucune donnée")

        result = classify_records(rows, columns_for(kind))
        transformed = transform_records(kind, result.valid_data, self.config)
        entities = transformed.entities
        preview = ImportPreview(kind=kind, filename=filename, warnings=transformed.warnings)

        if self.config.cross_batch_dedup and entities:
            by_row = {rec.source_row_number: ent for rec, ent in zip(result.valid_data, entities)}
            try:
                existing = self.store.find_existing(kind, list(field_map_for(kind).values()), entities)
            except StoreError as e:
                logger.warning("Contrôle des doublons existants impossible: %s", e)
                preview.notes.append(f"Doublons existants non vérifiés: {e}")
            else:
                result = mark_existing(kind, result, entities, existing)
                entities = [by_row[rec.source_row_number] for rec in result.valid_data]
                kept = set(by_row) - {rec.source_row_number for rec in result.duplicates}
                preview.warnings = [w for w in preview.warnings if w.row in kept]

        preview.valid_data = result.valid_data
        preview.duplicates = result.duplicates
        preview.entities = entities
        preview.totals = compute_totals(kind, entities)
        logger.info(
            "Aperçu %s: %d nouvelle(s), %d doublon(s), %d avertissement(s)",
            filename,
            len(preview.valid_data),
            len(preview.duplicates),
            len(preview.warnings),
        )
        return preview

    def commit(self, preview: ImportPreview) -> ImportOutcome:
        """Enregistre les lignes nouvelles de l'aperçu et applique les mouvements de stock."""
        kind = preview.kind
        errors: list[str] = []
        pending: list[tuple[int, Entity]] = []

        for rec, entity in zip(preview.valid_data, preview.entities):
            if kind == "sales" and self.config.strict_required_fields:
                missing = missing_required_fields(entity)
                if missing:
                    errors.append(f"Ligne {rec.source_row_number}: champs obligatoires manquants ({', '.join(missing)})")
                    continue
            pending.append((rec.source_row_number, entity))

        inserted: list[Entity] = []
        stock_errors: list[str] = []
        size = self.config.batch_size
        for start in range(0, len(pending), size):
            batch = pending[start : start + size]
            if kind == "sales" and self.store.supports_atomic_sale:
                inserted.extend(self._insert_atomic(batch, errors))
            else:
                inserted.extend(self._insert_batch(kind, batch, errors))

        if kind == "sales" and not self.store.supports_atomic_sale:
            stock_errors = self._apply_stock_moves(inserted)

        outcome = ImportOutcome(
            kind=kind,
            success=len(inserted),
            duplicates=len(preview.duplicates),
            errors=tuple(errors),
            warnings=tuple(preview.warnings),
            stock_errors=tuple(stock_errors),
        )
        self._audit(
            AUDIT_ACTIONS[kind],
            f"Imported {outcome.success} {kind}, {outcome.duplicates} duplicates, {outcome.error_count} errors",
        )
        logger.info(outcome.message)
        return outcome

    def run(
        self,
        content: bytes | str,
        filename: str,
        kind: str,
        *,
        dry_run: bool = False,
    ) -> tuple[ImportPreview, ImportOutcome]:
        """Aperçu puis, hors dry-run, enregistrement."""
        preview = self.preview(content, filename, kind)
        if dry_run:
            outcome = ImportOutcome(
                kind=preview.kind,
                success=0,
                duplicates=len(preview.duplicates),
                warnings=tuple(preview.warnings),
                dry_run=True,
            )
            return preview, outcome
        return preview, self.commit(preview)

    def import_file(self, filepath: str | Path, kind: str, *, dry_run: bool = False) -> tuple[ImportPreview, ImportOutcome]:
        """Lit un fichier sur disque puis exécute run()."""
        path = Path(filepath)
        if not path.exists():
            raise DecodeError(f"Fichier introuvable: {path}")
        try:
            content = path.read_bytes()
        except OSError as e:
            raise DecodeError(f"Impossible de lire {path}: {e}") from e
        return self.run(content, path.name, kind, dry_run=dry_run)

    def _insert_batch(self, kind: str, batch: Sequence[tuple[int, Entity]], errors: list[str]) -> list[Entity]:
        result = self.store.insert_batch(kind, [entity for _, entity in batch])
        if result.ok:
            return [entity for _, entity in batch]

        logger.warning("Insertion groupée refusée (%s), reprise ligne par ligne", result.error)
        inserted: list[Entity] = []
        for row, entity in batch:
            single = self.store.insert_batch(kind, [entity])
            if single.ok:
                inserted.append(entity)
            else:
                errors.append(f"Ligne {row} ({_label(entity)}): {single.error}")
        return inserted

    def _insert_atomic(self, batch: Sequence[tuple[int, Entity]], errors: list[str]) -> list[Entity]:
        inserted: list[Entity] = []
        for row, entity in batch:
            try:
                self.store.insert_sale_and_adjust_stock(entity)
            except StoreError as e:
                errors.append(f"Ligne {row} ({_label(entity)}): {e}")
            else:
                inserted.append(entity)
        return inserted

    def _apply_stock_moves(self, sales: Sequence[Entity]) -> list[str]:
        """Décrémente le stock produit par produit, un mouvement cumulé par produit."""
        deltas: dict[str, int] = defaultdict(int)
        for sale in sales:
            if sale["product"] and sale["quantity"]:
                deltas[sale["product"]] -= sale["quantity"]

        failures: list[str] = []
        for product, delta in deltas.items():
            try:
                self.store.adjust_stock(product, delta)
            except StoreError as e:
                logger.warning("Stock non mis à jour pour %s: %s", product, e)
                failures.append(f"Stock non mis à jour pour {product}: {e}")
        return failures

    def _audit(self, action: str, details: str) -> None:
        try:
            self.store.append_audit_log(action, details)
        except Exception as e:
            logger.warning("Échec de journalisation de l'action %s: %s", action, e)


def _label(entity: dict[str, Any]) -> str:
    return str(entity.get("product") or entity.get("name") or "?")
