from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from reportlab.lib.pagesizes import A4

from .blocks import Block, Bullet, Header, Paragraph, Table, TocEntry, collect_sections
from .formatting import format_number_cell
from .tables import TABLE_BOTTOM_GAP, cell_width, column_widths, is_bold_row, row_height, table_style, wrap_cell
from .text import ReportFonts, measure, wrap_runs, wrap_text
from .themes import Palette, resolve_palette


logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN_TOP = 72.0
MARGIN_BOTTOM = 72.0
MARGIN_LEFT = 56.0
MARGIN_RIGHT = 56.0
CONTENT_LEFT = MARGIN_LEFT
CONTENT_RIGHT = PAGE_WIDTH - MARGIN_RIGHT
CONTENT_WIDTH = PAGE_WIDTH - MARGIN_LEFT - MARGIN_RIGHT
TOP_Y = PAGE_HEIGHT - MARGIN_TOP

H2_FONT_SIZE = 18.0
H2_GAP_BEFORE = 30.0
H2_GAP_TEXT_TO_RULE = 5.0
H2_GAP_AFTER = 15.0
H2_HEIGHT = H2_GAP_BEFORE + H2_GAP_TEXT_TO_RULE + H2_GAP_AFTER

H3_FONT_SIZE = 14.0
H3_GAP_BEFORE = 20.0
H3_LINE_FACTOR = 1.4
H3_HEIGHT = H3_GAP_BEFORE + H3_FONT_SIZE * H3_LINE_FACTOR

BODY_FONT_SIZE = 10.0
BODY_LINE_HEIGHT = 15.0
PARAGRAPH_GAP_AFTER = 5.0

CAPTION_FONT_SIZE = 8.0
CAPTION_LINE_HEIGHT = 12.0
CAPTION_GAP_AFTER = 10.0
CAPTION_ALPHA = 0.75

BULLET_TEXT_INDENT = 20.0
BULLET_RADIUS = 2.0

TOC_FONT_SIZE = 9.0
TOC_LINE_HEIGHT = 12.0
TOC_SUBTOPIC_INDENT = 20.0
TOC_ENTRY_GAP = 6.0

TABLE_BORDER_WIDTH = 0.5

_MEASURE_ORIGIN_Y = 1.0e9


class Painter(Protocol):
    def new_page(self) -> None: ...

    def text(
        self,
        x: float,
        y: float,
        text: str,
        *,
        font_name: str,
        font_size: float,
        color: Any,
        alpha: float = 1.0,
    ) -> None: ...

    def line(
        self,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        *,
        color: Any,
        width: float = 1.0,
        alpha: float = 1.0,
        dash: Sequence[float] | None = None,
        round_cap: bool = False,
    ) -> None: ...

    def rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: Any = None,
        stroke: Any = None,
        stroke_width: float = 1.0,
        alpha: float = 1.0,
    ) -> None: ...

    def circle(
        self,
        x: float,
        y: float,
        radius: float,
        *,
        fill: Any = None,
        stroke: Any = None,
        stroke_width: float = 1.0,
        alpha: float = 1.0,
    ) -> None: ...

    def link(self, rect: tuple[float, float, float, float], target_index: int) -> None: ...


class NullPainter:
    """Accepts every drawing call and draws nothing; drives the measuring pass."""

    def new_page(self) -> None:
        return None

    def text(self, x: float, y: float, text: str, **kwargs: Any) -> None:
        return None

    def line(self, x1: float, y1: float, x2: float, y2: float, **kwargs: Any) -> None:
        return None

    def rect(self, x: float, y: float, width: float, height: float, **kwargs: Any) -> None:
        return None

    def circle(self, x: float, y: float, radius: float, **kwargs: Any) -> None:
        return None

    def link(self, rect: tuple[float, float, float, float], target_index: int) -> None:
        return None


@dataclass
class LayoutResult:
    header_pages: dict[str, int] = field(default_factory=dict)
    page_sections: dict[int, str] = field(default_factory=dict)
    section_pages: dict[str, int] = field(default_factory=dict)
    header_positions: dict[str, tuple[int, float]] = field(default_factory=dict)
    sections: list[str] = field(default_factory=list)
    page_count: int = 1


class BlockLayout:
    """Walks parsed blocks with a page cursor, delegating every mark to a painter.

    The measuring pass and the drawing pass both run this class, so block
    heights and the page-break predicate are the same code in both.
    """

    def __init__(
        self,
        painter: Painter,
        *,
        fonts: ReportFonts,
        palette: Palette | None = None,
        sections: Sequence[str] = (),
    ) -> None:
        self.painter = painter
        self.fonts = fonts
        self.palette = palette or resolve_palette(None)
        self.y = TOP_Y
        self.page = 1
        self.sections = list(sections)
        self.active_section = self.sections[0] if self.sections else ''
        self.result = LayoutResult(sections=list(self.sections))

    def new_page(self) -> None:
        self.result.page_sections[self.page] = self.active_section
        self.painter.new_page()
        self.y = TOP_Y
        self.page += 1
        logger.debug('Layout moved to page %s', self.page)

    def ensure_room(self, required: float) -> None:
        if self.y - required < MARGIN_BOTTOM:
            self.new_page()

    def at_page_top(self) -> bool:
        return self.y >= TOP_Y

    def run(self, blocks: Sequence[Block]) -> LayoutResult:
        for block in blocks:
            self.layout_block(block)
        self.result.page_sections[self.page] = self.active_section
        self.result.page_count = self.page
        return self.result

    def layout_block(self, block: Block) -> None:
        if isinstance(block, Header):
            self._layout_header(block)
        elif isinstance(block, Table):
            self._layout_table(block)
        elif isinstance(block, TocEntry):
            self._layout_toc_entry(block)
        elif isinstance(block, Bullet):
            self._layout_bullet(block)
        elif isinstance(block, Paragraph):
            if block.follows_table:
                self._layout_caption(block)
            else:
                self._layout_paragraph(block)
        else:
            raise TypeError(f'unsupported block: {block!r}')

    def _record_header(self, header: Header) -> None:
        self.result.header_pages.setdefault(header.text, self.page)
        self.result.header_positions.setdefault(header.text, (self.page, self.y))
        if header.level == 2 and header.title in self.sections:
            self.result.section_pages.setdefault(header.title, self.page)
            self.active_section = header.title

    def _layout_header(self, header: Header) -> None:
        palette = self.palette
        if header.level == 2:
            if header.is_appendix and not self.at_page_top():
                self.new_page()
            self.ensure_room(H2_HEIGHT)
            self.y -= H2_GAP_BEFORE
            self._record_header(header)
            self.painter.text(
                CONTENT_LEFT,
                self.y,
                header.text,
                font_name=self.fonts.bold,
                font_size=H2_FONT_SIZE,
                color=palette.main_text,
            )
            self.y -= H2_GAP_TEXT_TO_RULE
            self.painter.line(CONTENT_LEFT, self.y, CONTENT_RIGHT, self.y, color=palette.h2_border, width=1.0)
            self.y -= H2_GAP_AFTER
            return

        self.ensure_room(H3_HEIGHT)
        self.y -= H3_GAP_BEFORE
        self._record_header(header)
        self.painter.text(
            CONTENT_LEFT,
            self.y,
            header.text,
            font_name=self.fonts.bold,
            font_size=H3_FONT_SIZE,
            color=palette.main_text,
        )
        self.y -= H3_FONT_SIZE * H3_LINE_FACTOR

    def _layout_paragraph(self, paragraph: Paragraph) -> None:
        fonts = self.fonts
        words = [
            (word, fonts.bold if index < paragraph.bold_words else fonts.regular)
            for index, word in enumerate(paragraph.text.split())
        ]
        lines = wrap_runs(words, BODY_FONT_SIZE, CONTENT_WIDTH, space_font=fonts.regular)
        space_width = measure(' ', fonts.regular, BODY_FONT_SIZE)
        for line in lines:
            self.ensure_room(BODY_LINE_HEIGHT)
            x = CONTENT_LEFT
            for word, font_name in line:
                self.painter.text(
                    x,
                    self.y,
                    word,
                    font_name=font_name,
                    font_size=BODY_FONT_SIZE,
                    color=self.palette.main_text,
                )
                x += measure(word, font_name, BODY_FONT_SIZE) + space_width
            self.y -= BODY_LINE_HEIGHT
        self.y -= PARAGRAPH_GAP_AFTER

    def _layout_caption(self, paragraph: Paragraph) -> None:
        lines = wrap_text(paragraph.text, self.fonts.regular, CAPTION_FONT_SIZE, CONTENT_WIDTH)
        for line in lines:
            self.ensure_room(CAPTION_LINE_HEIGHT)
            self.painter.text(
                CONTENT_LEFT,
                self.y,
                line,
                font_name=self.fonts.regular,
                font_size=CAPTION_FONT_SIZE,
                color=self.palette.main_text,
                alpha=CAPTION_ALPHA,
            )
            self.y -= CAPTION_LINE_HEIGHT
        self.y -= CAPTION_GAP_AFTER

    def _layout_bullet(self, bullet: Bullet) -> None:
        lines = wrap_text(bullet.text, self.fonts.regular, BODY_FONT_SIZE, CONTENT_WIDTH - BULLET_TEXT_INDENT)
        height = len(lines) * BODY_LINE_HEIGHT + PARAGRAPH_GAP_AFTER
        self.ensure_room(height)
        self.painter.circle(CONTENT_LEFT + 5, self.y + 4, BULLET_RADIUS, fill=self.palette.main_text)
        for index, line in enumerate(lines):
            self.painter.text(
                CONTENT_LEFT + BULLET_TEXT_INDENT,
                self.y - index * BODY_LINE_HEIGHT,
                line,
                font_name=self.fonts.regular,
                font_size=BODY_FONT_SIZE,
                color=self.palette.main_text,
            )
        self.y -= height

    def _layout_table(self, table: Table) -> None:
        fonts = self.fonts
        palette = self.palette
        style = table_style(table.headers, in_appendix=table.in_appendix)
        column_count = len(table.headers)
        widths = column_widths(table.headers, CONTENT_WIDTH)

        header_height = row_height(table.headers, fonts.bold, style, widths, CONTENT_WIDTH)
        self.ensure_room(header_height)
        x = CONTENT_LEFT
        for index, header in enumerate(table.headers):
            width = widths[index]
            self.painter.rect(x, self.y - header_height, width, header_height, fill=palette.table_header_bg)
            self._draw_cell_lines(wrap_cell(header, fonts.bold, style, width), x, fonts.bold, style)
            x += width
        self.y -= header_height

        for row in table.rows:
            cells = list(row[:column_count])
            cells.extend([''] * (column_count - len(cells)))
            font_name = fonts.bold if is_bold_row(cells) else fonts.regular
            height = row_height(cells, font_name, style, widths, CONTENT_WIDTH)
            self.ensure_room(height)
            x = CONTENT_LEFT
            for index, cell in enumerate(cells):
                width = cell_width(widths, index, CONTENT_WIDTH, column_count)
                self.painter.rect(
                    x,
                    self.y - height,
                    width,
                    height,
                    stroke=palette.table_border,
                    stroke_width=TABLE_BORDER_WIDTH,
                )
                value = format_number_cell(cell) if index > 0 else cell
                self._draw_cell_lines(wrap_cell(value, font_name, style, width), x, font_name, style)
                x += width
            self.y -= height
        self.y -= TABLE_BOTTOM_GAP

    def _draw_cell_lines(self, lines: Sequence[str], x: float, font_name: str, style: Any) -> None:
        for line_index, line in enumerate(lines):
            self.painter.text(
                x + style.padding,
                self.y - style.padding - style.font_size - line_index * style.line_height,
                line,
                font_name=font_name,
                font_size=style.font_size,
                color=self.palette.main_text,
            )

    def _layout_toc_entry(self, entry: TocEntry) -> None:
        fonts = self.fonts
        palette = self.palette
        x = CONTENT_LEFT + (TOC_SUBTOPIC_INDENT if entry.is_subtopic else 0.0)
        page_label_width = measure(entry.page, fonts.regular, TOC_FONT_SIZE)
        available = CONTENT_RIGHT - x - page_label_width - 15
        lines = wrap_text(entry.title, fonts.regular, TOC_FONT_SIZE, available)
        required = len(lines) * TOC_LINE_HEIGHT
        self.ensure_room(required)

        for index, line in enumerate(lines):
            self.painter.text(
                x,
                self.y - index * TOC_LINE_HEIGHT,
                line,
                font_name=fonts.regular,
                font_size=TOC_FONT_SIZE,
                color=palette.main_text,
            )

        last_line_y = self.y - (len(lines) - 1) * TOC_LINE_HEIGHT
        target_page = entry.target_page
        if target_page is not None and target_page >= 1:
            rect = (x, last_line_y - 2, CONTENT_RIGHT, self.y + TOC_FONT_SIZE)
            self.painter.link(rect, target_page - 1)

        self.painter.text(
            CONTENT_RIGHT - page_label_width,
            last_line_y,
            entry.page,
            font_name=fonts.regular,
            font_size=TOC_FONT_SIZE,
            color=palette.main_text,
        )
        dot_start = x + measure(lines[-1], fonts.regular, TOC_FONT_SIZE) + 5
        dot_end = CONTENT_RIGHT - page_label_width - 5
        if dot_end > dot_start:
            self.painter.line(
                dot_start,
                last_line_y + 3,
                dot_end,
                last_line_y + 3,
                color=palette.main_text,
                width=1.0,
                alpha=0.5,
                dash=(0, 3),
                round_cap=True,
            )
        self.y -= required + TOC_ENTRY_GAP


def simulate_layout(blocks: Sequence[Block], fonts: ReportFonts) -> LayoutResult:
    layout = BlockLayout(NullPainter(), fonts=fonts, sections=collect_sections(blocks))
    result = layout.run(blocks)
    logger.debug(
        'Simulated %s blocks onto %s pages (%s headers)',
        len(blocks),
        result.page_count,
        len(result.header_pages),
    )
    return result


def measure_block(block: Block, fonts: ReportFonts) -> float:
    layout = BlockLayout(NullPainter(), fonts=fonts)
    layout.y = _MEASURE_ORIGIN_Y
    layout.layout_block(block)
    return _MEASURE_ORIGIN_Y - layout.y
