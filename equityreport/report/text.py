from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence

from reportlab.pdfbase import pdfmetrics


logger = logging.getLogger(__name__)

FONT_REGULAR_NAME = 'Helvetica'
FONT_BOLD_NAME = 'Helvetica-Bold'


@dataclass(frozen=True)
class ReportFonts:
    regular: str
    bold: str


@lru_cache(maxsize=1)
def get_report_fonts() -> ReportFonts:
    registered = set(pdfmetrics.getRegisteredFontNames()) | set(pdfmetrics.standardFonts)
    for font_name in (FONT_REGULAR_NAME, FONT_BOLD_NAME):
        if font_name not in registered:
            raise RuntimeError(f'PDF font is not available: {font_name}')
        # Loads the AFM metrics once so later measurements are read-only lookups.
        pdfmetrics.getFont(font_name)
    logger.debug('Resolved report fonts %s / %s', FONT_REGULAR_NAME, FONT_BOLD_NAME)
    return ReportFonts(regular=FONT_REGULAR_NAME, bold=FONT_BOLD_NAME)


PDF_TEXT_ENCODING = 'cp1252'


def pdf_safe_text(text: Any) -> str:
    value = str(text if text is not None else '')
    # Standard Type1 fonts only carry the WinAnsi glyph set.
    return value.encode(PDF_TEXT_ENCODING, errors='replace').decode(PDF_TEXT_ENCODING)


def measure(text: str, font_name: str, font_size: float) -> float:
    if not text:
        return 0.0
    return float(pdfmetrics.stringWidth(text, font_name, font_size))


def split_word(word: str, font_name: str, font_size: float, max_width: float) -> list[str]:
    chunks: list[str] = []
    remaining = word
    while remaining:
        split_index = len(remaining)
        while split_index > 1 and measure(remaining[:split_index], font_name, font_size) > max_width:
            split_index -= 1
        chunks.append(remaining[:split_index])
        remaining = remaining[split_index:]
    return chunks


def wrap_text(text: Any, font_name: str, font_size: float, max_width: float) -> list[str]:
    words = str(text if text is not None else '').split()
    if not words:
        return ['']

    lines: list[str] = []
    current = ''
    for word in words:
        if measure(word, font_name, font_size) > max_width:
            if current:
                # the head of the word fills whatever is left of the open line
                taken = 0
                while taken < len(word) and measure(f'{current} {word[:taken + 1]}', font_name, font_size) <= max_width:
                    taken += 1
                lines.append(f'{current} {word[:taken]}' if taken else current)
                word = word[taken:]
            chunks = split_word(word, font_name, font_size, max_width)
            lines.extend(chunks[:-1])
            current = chunks[-1]
            continue

        candidate = f'{current} {word}' if current else word
        if measure(candidate, font_name, font_size) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word

    if current:
        lines.append(current)
    return lines or ['']


StyledWord = tuple[str, str]


def _runs_width(line: Sequence[StyledWord], font_size: float, space_width: float) -> float:
    if not line:
        return 0.0
    words_width = sum(measure(word, font, font_size) for word, font in line)
    return words_width + space_width * (len(line) - 1)


def wrap_runs(
    words: Sequence[StyledWord],
    font_size: float,
    max_width: float,
    *,
    space_font: str = FONT_REGULAR_NAME,
) -> list[list[StyledWord]]:
    if not words:
        return [[]]

    space_width = measure(' ', space_font, font_size)
    lines: list[list[StyledWord]] = []
    current: list[StyledWord] = []
    for word, font in words:
        if measure(word, font, font_size) > max_width:
            if current:
                taken = 0
                while taken < len(word) and (
                    _runs_width([*current, (word[:taken + 1], font)], font_size, space_width) <= max_width
                ):
                    taken += 1
                lines.append([*current, (word[:taken], font)] if taken else current)
                word = word[taken:]
            chunks = split_word(word, font, font_size, max_width)
            lines.extend([[(chunk, font)] for chunk in chunks[:-1]])
            current = [(chunks[-1], font)]
            continue

        candidate = [*current, (word, font)]
        if _runs_width(candidate, font_size, space_width) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = [(word, font)]

    if current:
        lines.append(current)
    return lines or [[]]


def fit_font_size(
    text: Any,
    font_name: str,
    max_size: float,
    min_size: float,
    max_width: float,
) -> float:
    value = str(text if text is not None else '')
    size = float(max_size)
    while measure(value, font_name, size) > max_width and size > min_size:
        size -= 1
    return size


def draw_text_fitted(
    painter: Any,
    text: Any,
    *,
    x: float,
    y: float,
    font_name: str,
    max_size: float,
    max_width: float,
    color: Any,
    min_size: float = 8,
    alpha: float = 1.0,
) -> float:
    value = str(text if text is not None else '')
    size = fit_font_size(value, font_name, max_size, min_size, max_width)
    painter.text(x, y, value, font_name=font_name, font_size=size, color=color, alpha=alpha)
    return size
