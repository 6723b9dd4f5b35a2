from __future__ import annotations

import logging
import time
import traceback
from pathlib import Path
from typing import Iterable

from equityreport.adapters.cover_data import load_report
from equityreport.config import get_settings
from equityreport.report.pdf_export import render_report
from equityreport.report.themes import resolve_theme_name
from equityreport.storage import append_event, export_path, exports_root, write_bytes_atomic, write_json_atomic
from equityreport.types import ExportRecord, ExportStatus, Report, ThemeName, utcnow


logger = logging.getLogger(__name__)

BATCH_MANIFEST_NAME = 'last_batch.json'


def export_report(
    report: Report,
    *,
    theme: ThemeName | str | None = None,
    output_path: Path | None = None,
) -> ExportRecord:
    settings = get_settings()
    theme_name = resolve_theme_name(theme or settings.default_theme)
    ticker = report.cover_page_data.ticker
    target = output_path or export_path(ticker)

    result = render_report(
        report,
        theme_name,
        title_prefix=settings.pdf_title_prefix,
        author=settings.pdf_author,
        producer=settings.pdf_producer,
        brand_text=settings.brand_text,
        disclaimer=settings.footer_disclaimer,
    )
    write_bytes_atomic(target, result.pdf_bytes)

    record = ExportRecord(
        report_id=report.id,
        ticker=ticker,
        theme=theme_name,
        status=ExportStatus.rendered,
        output_path=str(target),
        page_count=result.page_count,
        size_bytes=len(result.pdf_bytes),
        metadata={
            'toc_entries': len(result.toc_entries),
            'body_start_page': result.body_start_index + 1,
        },
    )
    append_event(
        'pdf_export_rendered',
        report_id=report.id,
        ticker=ticker,
        theme=theme_name.value,
        output_path=str(target),
        page_count=result.page_count,
        size_bytes=record.size_bytes,
    )
    logger.info('Exported %s to %s', ticker or report.id, target)
    return record


def export_report_file(
    report_path: Path,
    *,
    theme: ThemeName | str | None = None,
    output_path: Path | None = None,
) -> ExportRecord:
    return export_report(load_report(report_path), theme=theme, output_path=output_path)


def export_batch(
    report_paths: Iterable[Path],
    *,
    theme: ThemeName | str | None = None,
    output_dir: Path | None = None,
    delay_seconds: float | None = None,
) -> list[ExportRecord]:
    settings = get_settings()
    delay = settings.export_delay_seconds if delay_seconds is None else delay_seconds
    theme_name = resolve_theme_name(theme or settings.default_theme)
    records: list[ExportRecord] = []

    for index, report_path in enumerate(report_paths):
        if index > 0 and delay > 0:
            time.sleep(delay)
        report_id = 0
        ticker = ''
        try:
            report = load_report(report_path)
            report_id = report.id
            ticker = report.cover_page_data.ticker
            target = export_path(ticker, output_dir=output_dir) if output_dir is not None else None
            records.append(export_report(report, theme=theme_name, output_path=target))
        except Exception as exc:
            detail = ''.join(traceback.format_exception_only(type(exc), exc)).strip()
            logger.exception('Export failed for %s', report_path)
            append_event(
                'pdf_export_failed',
                report_path=str(report_path),
                report_id=report_id,
                ticker=ticker,
                error=detail,
                stack=traceback.format_exc(),
            )
            records.append(
                ExportRecord(
                    report_id=report_id,
                    ticker=ticker,
                    theme=theme_name,
                    status=ExportStatus.failed,
                    error=detail,
                    metadata={'report_path': str(report_path)},
                )
            )

    write_json_atomic(
        exports_root() / BATCH_MANIFEST_NAME,
        {
            'finished_at': utcnow().isoformat(),
            'theme': theme_name.value,
            'rendered': sum(1 for record in records if record.status == ExportStatus.rendered),
            'failed': sum(1 for record in records if record.status == ExportStatus.failed),
            'exports': [record.model_dump(mode='json') for record in records],
        },
    )
    return records
