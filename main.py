from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from equityreport.config import get_settings
from equityreport.report.themes import FALLBACK_THEME, LEGACY_THEME_ALIASES
from equityreport.runner import export_batch, export_report_file
from equityreport.types import ExportRecord, ExportStatus, ThemeName


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _record_snapshot(record: ExportRecord) -> dict:
    return {
        'report_id': record.report_id,
        'ticker': record.ticker,
        'theme': record.theme.value,
        'status': record.status.value,
        'output_path': record.output_path,
        'page_count': record.page_count,
        'size_bytes': record.size_bytes,
        'error': record.error,
        'created_at': record.created_at.isoformat(),
        'metadata': record.metadata,
    }


def cmd_render(args: argparse.Namespace) -> int:
    report_path = Path(args.report).expanduser().resolve()
    if not report_path.exists():
        _print_json({'status': 'error', 'message': f'Report file not found: {report_path}'})
        return 2

    output_path = Path(args.output).expanduser().resolve() if args.output else None
    record = export_report_file(report_path, theme=args.theme, output_path=output_path)
    _print_json(_record_snapshot(record))
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    report_paths = [Path(item).expanduser().resolve() for item in args.reports]
    missing = [str(path) for path in report_paths if not path.exists()]
    if missing:
        _print_json({'status': 'error', 'message': 'Report files not found', 'missing': missing})
        return 2

    output_dir = Path(args.output_dir).expanduser().resolve() if args.output_dir else None
    records = export_batch(report_paths, theme=args.theme, output_dir=output_dir)
    failed = [record for record in records if record.status == ExportStatus.failed]
    _print_json(
        {
            'status': 'completed' if not failed else 'partial',
            'rendered': len(records) - len(failed),
            'failed': len(failed),
            'exports': [_record_snapshot(record) for record in records],
        }
    )
    return 0 if not failed else 1


def cmd_themes(args: argparse.Namespace) -> int:
    settings = get_settings()
    _print_json(
        {
            'themes': [theme.value for theme in ThemeName],
            'aliases': {alias: theme.value for alias, theme in LEGACY_THEME_ALIASES.items()},
            'fallback': FALLBACK_THEME.value,
            'default': settings.default_theme.value,
        }
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Equity report PDF exporter CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    render = sub.add_parser('render', help='Render one report JSON file into a PDF')
    render.add_argument('--report', required=True, help='Path to report JSON ({id, coverPageData, reportContent})')
    render.add_argument('--theme', required=False, help='Theme name (unknown names fall back to classic)')
    render.add_argument('--output', required=False, help='Output PDF path')
    render.set_defaults(func=cmd_render)

    batch = sub.add_parser('batch', help='Render several report JSON files one after another')
    batch.add_argument('--reports', required=True, nargs='+', help='Paths to report JSON files')
    batch.add_argument('--theme', required=False, help='Theme name applied to every report')
    batch.add_argument('--output-dir', required=False, help='Directory for the rendered PDFs')
    batch.set_defaults(func=cmd_batch)

    themes = sub.add_parser('themes', help='List available themes')
    themes.set_defaults(func=cmd_themes)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
