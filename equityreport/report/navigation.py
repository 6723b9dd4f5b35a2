from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .canvas import DeferredPageCanvas
from .layout import MARGIN_BOTTOM, MARGIN_LEFT, MARGIN_RIGHT, PAGE_HEIGHT, PAGE_WIDTH
from .text import ReportFonts, measure
from .themes import Palette


DEFAULT_DISCLAIMER = 'This report is strictly for educational and informational purposes, not financial advice.'

FOOTER_FONT_SIZE = 8.0
FOOTER_ALPHA = 0.6
FOOTER_Y = MARGIN_BOTTOM / 2

NAV_X = PAGE_WIDTH - MARGIN_RIGHT + 20
NAV_CENTER_Y = PAGE_HEIGHT / 2
NAV_SPACING = 18.0
NAV_DOT_RADIUS = 3.0
NAV_ACTIVE_DOT_RADIUS = 4.5
NAV_TOUCH_HALF = 12.0


@dataclass(frozen=True)
class NavigatorDot:
    y: float
    radius: float
    active: bool
    target_index: int | None
    label: str = ''


@dataclass
class PageDecorations:
    """Per-document footer and dot navigator drawn onto every emitted page.

    Page indexes are absolute and 0-based: the cover is 0, the table of contents
    starts at 1 and the body starts at ``body_start_index``.
    """

    palette: Palette
    fonts: ReportFonts
    body_start_index: int
    toc_index: int = 1
    sections: Sequence[str] = ()
    section_pages: Mapping[str, int] = field(default_factory=dict)
    page_sections: Mapping[int, str] = field(default_factory=dict)
    disclaimer: str = DEFAULT_DISCLAIMER

    def __call__(self, pdf: DeferredPageCanvas, index: int, total: int) -> None:
        if index == 0:
            return
        self.draw_footer(pdf, index, total)
        if index >= self.body_start_index:
            body_page = index - self.body_start_index + 1
            active = self.page_sections.get(body_page, '')
            if active and self.sections:
                self.draw_navigator(pdf, index, active)

    def draw_footer(self, pdf: DeferredPageCanvas, index: int, total: int) -> None:
        pdf.saveState()
        pdf.setFillColor(self.palette.main_text)
        pdf.setFillAlpha(FOOTER_ALPHA)
        pdf.setFont(self.fonts.regular, FOOTER_FONT_SIZE)
        pdf.drawString(MARGIN_LEFT, FOOTER_Y, self.disclaimer)
        label = f'Page {index + 1} of {total}'
        label_width = measure(label, self.fonts.regular, FOOTER_FONT_SIZE)
        pdf.drawString(PAGE_WIDTH - MARGIN_RIGHT - label_width, FOOTER_Y, label)
        pdf.restoreState()

    def navigator_dots(self, active_section: str) -> list[NavigatorDot]:
        count = len(self.sections) + 1
        start_y = NAV_CENTER_Y + (count - 1) * NAV_SPACING / 2
        dots = [
            NavigatorDot(
                y=start_y,
                radius=NAV_DOT_RADIUS,
                active=False,
                target_index=self.toc_index,
                label='Table of Contents',
            )
        ]
        for position, section in enumerate(self.sections, start=1):
            active = section == active_section
            page = self.section_pages.get(section)
            dots.append(
                NavigatorDot(
                    y=start_y - position * NAV_SPACING,
                    radius=NAV_ACTIVE_DOT_RADIUS if active else NAV_DOT_RADIUS,
                    active=active,
                    target_index=self.body_start_index + page - 1 if page is not None else None,
                    label=section,
                )
            )
        return dots

    def draw_navigator(self, pdf: DeferredPageCanvas, index: int, active_section: str) -> None:
        for dot in self.navigator_dots(active_section):
            pdf.saveState()
            pdf.setFillColor(self.palette.accent if dot.active else self.palette.table_border)
            pdf.circle(NAV_X, dot.y, dot.radius, stroke=0, fill=1)
            pdf.restoreState()
            if dot.target_index is not None:
                rect = (
                    NAV_X - NAV_TOUCH_HALF,
                    dot.y - NAV_TOUCH_HALF,
                    NAV_X + NAV_TOUCH_HALF,
                    dot.y + NAV_TOUCH_HALF,
                )
                pdf.add_internal_link(rect, dot.target_index, source_index=index)
