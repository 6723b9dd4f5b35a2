from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from equityreport.storage import read_json
from equityreport.types import CoverDataError, CoverPageData, Report


_JSON_FENCE_PATTERN = re.compile(r'^```json\s*|```\s*$')


def strip_json_fence(response_text: str) -> str:
    return _JSON_FENCE_PATTERN.sub('', str(response_text or '').strip()).strip()


def parse_cover_page_data(response_text: str) -> CoverPageData:
    """Decode the generator's cover-page response, fenced or bare, into ``CoverPageData``."""
    cleaned = strip_json_fence(response_text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise CoverDataError(f'cover page response is not valid JSON: {exc.msg}') from exc
    return cover_page_data_from_payload(payload)


def cover_page_data_from_payload(payload: Any) -> CoverPageData:
    if not isinstance(payload, dict) or not payload.get('priceTarget'):
        raise CoverDataError('cover page data is missing priceTarget')
    try:
        return CoverPageData.model_validate(payload)
    except ValidationError as exc:
        raise CoverDataError(f'invalid cover page data: {exc.error_count()} error(s)') from exc


def report_from_payload(payload: Any) -> Report:
    if not isinstance(payload, dict):
        raise CoverDataError('report payload must be a JSON object')
    cover = payload.get('coverPageData', payload.get('cover_page_data'))
    content = payload.get('reportContent', payload.get('report_content', ''))
    try:
        report_id = int(payload.get('id') or 0)
    except (TypeError, ValueError) as exc:
        raise CoverDataError(f'report id must be an integer, got {payload.get("id")!r}') from exc
    return Report(
        id=report_id,
        cover_page_data=cover_page_data_from_payload(cover),
        report_content=str(content or ''),
    )


def load_report(path: Path) -> Report:
    try:
        payload = read_json(path)
    except json.JSONDecodeError as exc:
        raise CoverDataError(f'report file is not valid JSON: {path}: {exc.msg}') from exc
    return report_from_payload(payload)
