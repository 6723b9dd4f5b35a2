from __future__ import annotations

import re
from typing import Any


_PRICE_STRIP_PATTERN = re.compile(r'[^0-9.\-]')
_MARKET_CAP_SUFFIX_PATTERN = re.compile(r'[KkMmBbTt]')
_MARKET_CAP_STRIP_PATTERN = re.compile(r'[$,\s]')
_NUMBER_CELL_STRIP_PATTERN = re.compile(r'[$,%\s]')
_UNSIGNED_NUMBER_PATTERN = re.compile(r'\d+\.?\d*|\.\d+')
_LEADING_NUMBER_PATTERN = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')

_MARKET_CAP_STEPS: tuple[tuple[float, str], ...] = (
    (1e12, 'T'),
    (1e9, 'B'),
    (1e6, 'M'),
    (1e3, 'K'),
)


def _parse_leading_float(value: str) -> float | None:
    match = _LEADING_NUMBER_PATTERN.match(value)
    if match is None:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def parse_price(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if not value or not isinstance(value, str):
        return 0.0
    cleaned = _PRICE_STRIP_PATTERN.sub('', value)
    parsed = _parse_leading_float(cleaned)
    return parsed if parsed is not None else 0.0


def format_market_cap(value: str | None) -> str:
    if not value:
        return 'N/A'
    text = str(value)
    if _MARKET_CAP_SUFFIX_PATTERN.search(text):
        return text
    number = _parse_leading_float(_MARKET_CAP_STRIP_PATTERN.sub('', text))
    if number is None:
        return text
    for threshold, suffix in _MARKET_CAP_STEPS:
        if number >= threshold:
            return f'{number / threshold:.2f}{suffix}'
    return text


def _is_numeric_text(value: str) -> bool:
    return _UNSIGNED_NUMBER_PATTERN.fullmatch(_NUMBER_CELL_STRIP_PATTERN.sub('', value)) is not None


def format_number_cell(text: str) -> str:
    trimmed = text.strip()
    if trimmed.startswith('(') and trimmed.endswith(')'):
        return trimmed
    if trimmed.startswith('-') and _is_numeric_text(trimmed[1:]):
        return f'({trimmed[1:].strip()})'
    return text
