#!/usr/bin/env python3
"""
Mapeia todas as tags HTML presentes no conteúdo original dos registros do
arquivo de migração e gera um relatório em Markdown, destacando tags de mídia
que o conversor ainda não trata.

Uso:
  python scripts/map_html_tags.py \\
    --input input/sanity-migration.json \\
    --output data/html_tags_report.md

Se os argumentos não forem informados, os padrões acima serão usados.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from wp2sanity.migration_tool import MIGRATION_FILE_PATH, read_migration_file
from wp2sanity.parsers.tag_analyzer import analyze_html_tags, generate_tag_report
from wp2sanity.utils.errors import MigrationFileError


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mapear tags HTML do conteúdo original do arquivo de migração."
    )
    parser.add_argument(
        "--input",
        default=MIGRATION_FILE_PATH,
        help="Caminho do arquivo de migração (JSON)",
    )
    parser.add_argument(
        "--output",
        default="data/html_tags_report.md",
        help="Caminho do relatório Markdown de saída",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    out_path = Path(args.output)

    try:
        records, _ = read_migration_file(args.input)
    except MigrationFileError as e:
        raise SystemExit(f"{e.message}: {e.details.get('path')}")

    analysis = analyze_html_tags(records)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(generate_tag_report(analysis), encoding="utf-8")

    print(f"Tags únicas: {len(analysis.all_tags)}")
    print(f"Tags de mídia não cobertas: {sorted(analysis.uncovered_media_tags)}")
    print(f"Arquivo gerado: {out_path}")


if __name__ == "__main__":
    main()
