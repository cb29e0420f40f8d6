"""Interface en ligne de commande SuiviVente."""

from __future__ import annotations

import argparse
import logging
import sys

from suivivente import __version__
from suivivente.config import ImportConfig, SuiviVenteError
from suivivente.io_excel import save_xlsx
from suivivente.pipeline import ImportPipeline
from suivivente.report import build_preview_df, build_report_df, build_warnings_df, print_report_console
from suivivente.store import MemoryRecordStore, RecordStore
from suivivente.templates import write_template


def _make_store(kind: str, config: ImportConfig | None = None) -> RecordStore:
    if kind == "memory":
        return MemoryRecordStore()
    from suivivente.supabase_store import SupabaseRecordStore

    return SupabaseRecordStore.from_env(chunk_size=(config or ImportConfig()).batch_size)


def _load_config(config_path: str | None) -> ImportConfig:
    return ImportConfig.load(config_path) if config_path else ImportConfig()


def cmd_template(kind: str, output_path: str | None) -> int:
    """Écrit le modèle d'import."""
    path = write_template(kind, output_path)
    print(f"Modèle écrit: {path}")
    return 0


def cmd_preview(
    filepath: str,
    kind: str,
    *,
    config_path: str | None = None,
    output_path: str | None = None,
    store: RecordStore | None = None,
) -> int:
    """Aperçu d'un import (aucune écriture dans le stockage)."""
    config = _load_config(config_path)
    pipeline = ImportPipeline(store or MemoryRecordStore(), config)
    preview, outcome = pipeline.import_file(filepath, kind, dry_run=True)

    for note in preview.notes:
        print(f"Avertissement: {note}")
    for w in preview.warnings:
        print(f"Avertissement: {w}")
    print_report_console(outcome, preview)

    if output_path:
        save_xlsx(
            output_path,
            {
                "APERCU": build_preview_df(preview),
                "AVERTISSEMENTS": build_warnings_df(preview),
                "REPORT": build_report_df(outcome, preview, config),
            },
        )
        print(f"Aperçu écrit: {output_path}")
    return 0


def cmd_import(
    filepath: str,
    kind: str,
    *,
    config_path: str | None = None,
    dry_run: bool = False,
    report_path: str | None = None,
    store: RecordStore | None = None,
) -> int:
    """Exécute l'import complet (ou dry-run)."""
    config = _load_config(config_path)
    pipeline = ImportPipeline(store if store is not None else _make_store("supabase", config), config)
    preview, outcome = pipeline.import_file(filepath, kind, dry_run=dry_run)

    for note in preview.notes:
        print(f"Avertissement: {note}")
    print_report_console(outcome, preview)

    if dry_run:
        print("Mode dry-run: aucun enregistrement effectué.")

    if report_path:
        save_xlsx(
            report_path,
            {
                "REPORT": build_report_df(outcome, preview, config),
                "APERCU": build_preview_df(preview),
                "AVERTISSEMENTS": build_warnings_df(preview),
            },
        )
        print(f"Rapport écrit: {report_path}")

    return 1 if outcome.errors else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="suivivente",
        description="Import de fichiers de ventes et de stock (Excel, CSV)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Journal détaillé")

    subparsers = parser.add_subparsers(dest="command", help="Commandes")

    # template
    p_tpl = subparsers.add_parser("template", help="Télécharger le modèle d'import")
    p_tpl.add_argument("--kind", "-k", choices=["sales", "stock"], default="sales", help="Type d'import")
    p_tpl.add_argument("--output", "-o", help="Fichier de sortie (.xlsx ou .csv)")

    # preview
    p_prev = subparsers.add_parser("preview", help="Aperçu des lignes nouvelles et des doublons")
    p_prev.add_argument("file", help="Fichier .xlsx, .xls ou .csv")
    p_prev.add_argument("--kind", "-k", choices=["sales", "stock"], default="sales", help="Type d'import")
    p_prev.add_argument("--config", "-c", help="Fichier config JSON")
    p_prev.add_argument("--output", "-o", help="Fichier xlsx d'aperçu")
    p_prev.add_argument(
        "--store", choices=["memory", "supabase"], default="memory", help="Stockage pour les doublons existants"
    )

    # import
    p_imp = subparsers.add_parser("import", help="Importer un fichier")
    p_imp.add_argument("file", help="Fichier .xlsx, .xls ou .csv")
    p_imp.add_argument("--kind", "-k", choices=["sales", "stock"], default="sales", help="Type d'import")
    p_imp.add_argument("--config", "-c", help="Fichier config JSON")
    p_imp.add_argument("--dry-run", action="store_true", help="Ne rien enregistrer")
    p_imp.add_argument("--report", "-r", help="Fichier xlsx de rapport")
    p_imp.add_argument("--store", choices=["memory", "supabase"], default="supabase", help="Stockage cible")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "template":
            return cmd_template(args.kind, args.output)

        if args.command == "preview":
            return cmd_preview(
                args.file,
                args.kind,
                config_path=args.config,
                output_path=args.output,
                store=_make_store(args.store, _load_config(args.config)),
            )

        if args.command == "import":
            return cmd_import(
                args.file,
                args.kind,
                config_path=args.config,
                dry_run=args.dry_run,
                report_path=args.report,
                store=_make_store(args.store, _load_config(args.config)),
            )
    except SuiviVenteError as e:
        print(f"Erreur: {e}")
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
