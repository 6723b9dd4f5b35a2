from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .text import wrap_text


WIDE_COLUMN_KEYWORDS: tuple[str, ...] = (
    'analysis',
    'description',
    'impact',
    'context',
    'driver',
    'risk',
    'catalyst',
    'thesis',
    'overview',
    'commentary',
    'details',
    'reason',
    'strategy',
    'business model',
    'product',
    'competitor',
    'peer',
    'implication',
    'outlook',
)

TEXT_HEAVY_KEYWORDS: tuple[str, ...] = (
    'event',
    'impact',
    'description',
    'risk',
    'catalyst',
    'thesis',
    'overview',
    'driver',
    'context',
)

BOLD_ROW_KEYWORDS: tuple[str, ...] = (
    'revenue',
    'net sales',
    'sales revenue',
    'total revenue',
    'profit',
    'net income',
    'net earnings',
    'gross profit',
    'operating income',
    'total assets',
    'total liabilities',
    'equity',
    "shareholders' equity",
    'total equity',
    'cfo',
    'cfi',
    'cff',
    'net cash',
)

LONG_HEADER_CHARS = 20
TABLE_BOTTOM_GAP = 15.0


@dataclass(frozen=True)
class TableStyle:
    font_size: float
    line_height: float
    padding: float


TEXT_HEAVY_TABLE_STYLE = TableStyle(font_size=9, line_height=11, padding=3)
DATA_TABLE_STYLE = TableStyle(font_size=7, line_height=9, padding=2)


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def header_weight(header: str) -> int:
    if _contains_any(header, WIDE_COLUMN_KEYWORDS):
        return 3
    if len(header) > LONG_HEADER_CHARS:
        return 2
    return 1


def column_widths(headers: Sequence[str], total_width: float) -> list[float]:
    weights = [header_weight(header) for header in headers]
    total_weight = sum(weights)
    if total_weight <= 0:
        return []
    return [total_width * weight / total_weight for weight in weights]


def is_text_heavy_table(headers: Sequence[str]) -> bool:
    return any(_contains_any(header, TEXT_HEAVY_KEYWORDS) for header in headers)


def table_style(headers: Sequence[str], *, in_appendix: bool = False) -> TableStyle:
    if in_appendix:
        return DATA_TABLE_STYLE
    return TEXT_HEAVY_TABLE_STYLE if is_text_heavy_table(headers) else DATA_TABLE_STYLE


def is_bold_row(cells: Sequence[str]) -> bool:
    first = cells[0] if cells else ''
    return _contains_any(first, BOLD_ROW_KEYWORDS)


def cell_width(widths: Sequence[float], index: int, total_width: float, column_count: int) -> float:
    if index < len(widths):
        return widths[index]
    return total_width / max(1, column_count)


def wrap_cell(text: str, font_name: str, style: TableStyle, width: float) -> list[str]:
    return wrap_text(text.replace('**', ''), font_name, style.font_size, width - style.padding * 2)


def row_height(
    cells: Sequence[str],
    font_name: str,
    style: TableStyle,
    widths: Sequence[float],
    total_width: float,
) -> float:
    max_lines = 1
    column_count = len(widths)
    for index, cell in enumerate(cells[:column_count]):
        width = cell_width(widths, index, total_width, column_count)
        max_lines = max(max_lines, len(wrap_cell(cell, font_name, style, width)))
    return max_lines * style.line_height + style.padding * 2
