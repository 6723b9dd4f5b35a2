from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from reportlab.lib import colors

from equityreport.types import CoverPageData

from .formatting import format_market_cap, parse_price
from .layout import PAGE_HEIGHT, PAGE_WIDTH, Painter
from .text import ReportFonts, draw_text_fitted, measure, pdf_safe_text, wrap_text
from .themes import Palette


logger = logging.getLogger(__name__)

DEFAULT_BRAND_TEXT = 'Money Grow On Tree Reporting'

SIDEBAR_RATIO = 0.35
COMPANY_NAME_MAX_SIZE = 38
COMPANY_NAME_MIN_SIZE = 18
COMPANY_NAME_MAX_LINES = 2

TRACK_HEIGHT = 8.0
GRADIENT_STEPS = 30
MARKER_HALO_RADIUS = 9.0
MARKER_RING_RADIUS = 7.0
MARKER_RING_WIDTH = 2.0
LABEL_FONT_SIZE = 9.0
LABEL_ROW_OFFSET = 14.0
LABEL_BOX_PADDING = 2.0
LABEL_MIN_DISTANCE = 18.0
CURRENT_LABEL_FONT_SIZE = 10.0

GRADIENT_RED = colors.Color(239 / 255, 68 / 255, 68 / 255)
GRADIENT_YELLOW = colors.Color(252 / 255, 211 / 255, 77 / 255)
GRADIENT_GREEN = colors.Color(34 / 255, 197 / 255, 94 / 255)

MARKER_WORST = colors.Color(239 / 255, 68 / 255, 68 / 255)
MARKER_BASE = colors.Color(249 / 255, 115 / 255, 22 / 255)
MARKER_BEST = colors.Color(34 / 255, 197 / 255, 94 / 255)
MARKER_CURRENT = colors.Color(107 / 255, 114 / 255, 128 / 255)


@dataclass(frozen=True)
class PriceScale:
    worst: float
    base: float
    best: float
    current: float
    bar_start: float
    bar_end: float

    def position(self, value: float) -> float:
        bar_range = self.bar_end - self.bar_start
        if bar_range <= 0:
            return 50.0
        return max(0.0, min(100.0, (value - self.bar_start) / bar_range * 100))

    @property
    def worst_position(self) -> float:
        return self.position(self.worst)

    @property
    def base_position(self) -> float:
        return self.position(self.base)

    @property
    def best_position(self) -> float:
        return self.position(self.best)

    @property
    def current_position(self) -> float:
        return self.position(self.current)


@dataclass(frozen=True)
class PriceLabel:
    name: str
    value: str
    position: float
    color: colors.Color
    row: int = 0

    @property
    def text(self) -> str:
        return f'{self.name}: {self.value}'


def compute_price_scale(data: CoverPageData) -> PriceScale | None:
    worst = parse_price(data.price_target.worst)
    base = parse_price(data.price_target.base)
    best = parse_price(data.price_target.best)
    current = parse_price(data.current_price)
    if base <= 0 or current <= 0 or best <= 0:
        return None

    min_range = min(worst, current)
    max_range = max(best, current)
    span = max_range - min_range
    padding = max_range * 0.1 if span == 0 else span * 0.15
    return PriceScale(
        worst=worst,
        base=base,
        best=best,
        current=current,
        bar_start=max(0.0, min_range - padding),
        bar_end=max_range + padding,
    )


def label_span(label: PriceLabel, *, width: float, font_name: str) -> tuple[float, float]:
    """Horizontal extent of a label's background patch, relative to the bar start."""
    center = width * label.position / 100
    half = measure(label.text, font_name, LABEL_FONT_SIZE) / 2 + LABEL_BOX_PADDING
    return center - half, center + half


def _labels_collide(first: PriceLabel, second: PriceLabel, *, width: float, font_name: str) -> bool:
    if abs(first.position - second.position) <= LABEL_MIN_DISTANCE:
        return True
    first_left, first_right = label_span(first, width=width, font_name=font_name)
    second_left, second_right = label_span(second, width=width, font_name=font_name)
    return first_left < second_right and second_left < first_right


def place_labels(labels: Sequence[PriceLabel], *, width: float, font_name: str) -> list[PriceLabel]:
    """Assign each label, in order, the first row where it clears every label already there."""
    placed: list[PriceLabel] = []
    for label in labels:
        row = 0
        while any(
            other.row == row and _labels_collide(other, label, width=width, font_name=font_name) for other in placed
        ):
            row += 1
        placed.append(
            PriceLabel(name=label.name, value=label.value, position=label.position, color=label.color, row=row)
        )
    return placed


def gradient_color(ratio: float) -> colors.Color:
    if ratio < 0.5:
        return colors.linearlyInterpolatedColor(GRADIENT_RED, GRADIENT_YELLOW, 0, 1, ratio * 2)
    return colors.linearlyInterpolatedColor(GRADIENT_YELLOW, GRADIENT_GREEN, 0, 1, (ratio - 0.5) * 2)


def _draw_marker(painter: Painter, x: float, y: float, color: colors.Color, background: colors.Color) -> None:
    painter.circle(x, y, MARKER_HALO_RADIUS, fill=background)
    painter.circle(x, y, MARKER_RING_RADIUS, stroke=color, stroke_width=MARKER_RING_WIDTH)


def draw_price_target_visualizer(
    painter: Painter,
    data: CoverPageData,
    *,
    palette: Palette,
    fonts: ReportFonts,
    x_start: float,
    y_start: float,
    width: float,
) -> float:
    scale = compute_price_scale(data)
    if scale is None:
        logger.warning('Skipping price target visualizer for %s: unparseable prices', data.ticker or 'report')
        return y_start - 20

    background = palette.page_bg or colors.white
    bar_y = y_start - 40

    painter.rect(
        x_start,
        bar_y - TRACK_HEIGHT / 2,
        width,
        TRACK_HEIGHT,
        fill=palette.table_border,
        alpha=0.5,
    )

    worst_x = x_start + width * scale.worst_position / 100
    best_x = x_start + width * scale.best_position / 100
    range_x = max(0.0, best_x - worst_x)
    if range_x > 0:
        step_x = range_x / GRADIENT_STEPS
        for step in range(GRADIENT_STEPS):
            painter.rect(
                worst_x + step * step_x,
                bar_y - TRACK_HEIGHT / 2,
                step_x + 0.5,
                TRACK_HEIGHT,
                fill=gradient_color(step / (GRADIENT_STEPS - 1)),
            )

    target = data.price_target
    labels = place_labels(
        [
            PriceLabel('Worst', pdf_safe_text(target.worst), scale.worst_position, MARKER_WORST),
            PriceLabel('Base', pdf_safe_text(target.base), scale.base_position, MARKER_BASE),
            PriceLabel('Best', pdf_safe_text(target.best), scale.best_position, MARKER_BEST),
        ],
        width=width,
        font_name=fonts.regular,
    )
    label_y = bar_y - 35
    for label in labels:
        x = x_start + width * label.position / 100
        _draw_marker(painter, x, bar_y, label.color, background)
        left, right = label_span(label, width=width, font_name=fonts.regular)
        row_y = label_y - label.row * LABEL_ROW_OFFSET
        painter.rect(
            x_start + left,
            row_y - LABEL_BOX_PADDING,
            right - left,
            LABEL_FONT_SIZE + 2 * LABEL_BOX_PADDING,
            fill=background,
            alpha=0.9,
        )
        painter.text(
            x_start + left + LABEL_BOX_PADDING,
            row_y,
            label.text,
            font_name=fonts.regular,
            font_size=LABEL_FONT_SIZE,
            color=palette.main_text,
        )

    current_x = x_start + width * scale.current_position / 100
    current_label_y = bar_y + 25
    _draw_marker(painter, current_x, bar_y, MARKER_CURRENT, background)
    current_text = f'Current: {pdf_safe_text(data.current_price)}'
    current_width = measure(current_text, fonts.bold, CURRENT_LABEL_FONT_SIZE)
    painter.rect(
        current_x - current_width / 2 - 3,
        current_label_y - 2,
        current_width + 6,
        CURRENT_LABEL_FONT_SIZE + 4,
        fill=background,
        alpha=0.95,
    )
    painter.text(
        current_x - current_width / 2,
        current_label_y,
        current_text,
        font_name=fonts.bold,
        font_size=CURRENT_LABEL_FONT_SIZE,
        color=palette.main_text,
    )
    return y_start - 90


def fit_company_name(name: str, font_name: str, max_width: float) -> tuple[float, list[str]]:
    size = COMPANY_NAME_MAX_SIZE
    lines = wrap_text(name, font_name, size, max_width)
    while len(lines) > COMPANY_NAME_MAX_LINES and size > COMPANY_NAME_MIN_SIZE:
        size -= 1
        lines = wrap_text(name, font_name, size, max_width)
    return float(size), lines


def draw_cover_page(
    painter: Painter,
    data: CoverPageData,
    *,
    palette: Palette,
    fonts: ReportFonts,
    brand_text: str = DEFAULT_BRAND_TEXT,
) -> None:
    width, height = PAGE_WIDTH, PAGE_HEIGHT
    sidebar_width = width * SIDEBAR_RATIO
    painter.rect(0, 0, sidebar_width, height, fill=palette.sidebar_bg)
    if palette.page_bg is not None:
        painter.rect(sidebar_width, 0, width - sidebar_width, height, fill=palette.page_bg)

    main_x = sidebar_width + 50
    main_width = width - sidebar_width - 80
    text_color = palette.main_text

    painter.text(
        main_x,
        height - 50,
        pdf_safe_text(brand_text),
        font_name=fonts.bold,
        font_size=10,
        color=text_color,
        alpha=0.7,
    )

    y = height - 140
    painter.text(
        main_x,
        y,
        pdf_safe_text(data.report_title),
        font_name=fonts.bold,
        font_size=14,
        color=palette.accent,
    )
    y -= 50

    name_size, name_lines = fit_company_name(pdf_safe_text(data.company_name), fonts.bold, main_width)
    name_line_height = name_size * 1.2
    for index, line in enumerate(name_lines):
        painter.text(
            main_x,
            y - index * name_line_height,
            line,
            font_name=fonts.bold,
            font_size=name_size,
            color=text_color,
        )
    y -= len(name_lines) * name_line_height + 10

    painter.text(main_x, y, pdf_safe_text(data.ticker), font_name=fonts.regular, font_size=20, color=text_color, alpha=0.7)
    y -= 40

    metric_width = main_width / 2
    metrics = (
        ('Current Price', pdf_safe_text(data.current_price)),
        ('Market Cap', pdf_safe_text(format_market_cap(data.market_cap))),
    )
    for index, (label, value) in enumerate(metrics):
        x = main_x + index * metric_width
        painter.text(x, y, label, font_name=fonts.regular, font_size=9, color=text_color, alpha=0.7)
        draw_text_fitted(
            painter,
            value,
            x=x,
            y=y - 20,
            font_name=fonts.bold,
            max_size=14,
            max_width=metric_width - 10,
            color=text_color,
        )
    y -= 25

    y = draw_price_target_visualizer(
        painter,
        data,
        palette=palette,
        fonts=fonts,
        x_start=main_x,
        y_start=y,
        width=main_width,
    )
    y -= 20

    painter.line(main_x, y, width - 50, y, color=palette.table_border, width=0.5, alpha=0.5)
    y -= 40

    upside_label = 'Potential Upside (Base)'
    upside_text = pdf_safe_text(data.potential_upside)
    label_width = measure(upside_label, fonts.regular, 11)
    value_width = measure(upside_text, fonts.bold, 22)
    painter.text(
        main_x + (main_width - label_width) / 2,
        y,
        upside_label,
        font_name=fonts.regular,
        font_size=11,
        color=text_color,
        alpha=0.7,
    )
    painter.text(
        main_x + (main_width - value_width) / 2,
        y - 28,
        upside_text,
        font_name=fonts.bold,
        font_size=22,
        color=text_color,
    )

    painter.text(
        main_x,
        60,
        pdf_safe_text(f'Report Date: {data.report_date}'),
        font_name=fonts.regular,
        font_size=10,
        color=text_color,
        alpha=0.6,
    )
