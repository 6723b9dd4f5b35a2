from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from reportlab.pdfgen import canvas

from equityreport.types import DocumentAssemblyError

from .themes import Palette


logger = logging.getLogger(__name__)

PageDecorator = Callable[['DeferredPageCanvas', int, int], None]
LinkRect = tuple[float, float, float, float]


_DEFERRED_ATTRS = frozenset({'_page_states', '_page_links', '_page_decorator', '_link_count', '_flushed'})


def page_key(index: int) -> str:
    return f'page-{index}'


class DeferredPageCanvas(canvas.Canvas):
    """Canvas that holds every page back until the document is complete.

    Pages are stashed on ``showPage`` and emitted on ``save``/``getpdfdata``, once
    the total page count is known. At that point each page is bookmarked as a
    link destination, decorated (footer, navigator) and given its internal links.
    """

    def __init__(self, *args: Any, page_decorator: PageDecorator | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._page_states: list[dict[str, Any]] = []
        self._page_links: dict[int, list[tuple[LinkRect, int]]] = {}
        self._page_decorator = page_decorator
        self._link_count = 0
        self._flushed = False

    @property
    def page_index(self) -> int:
        return len(self._page_states)

    def showPage(self) -> None:
        self._page_states.append({key: value for key, value in self.__dict__.items() if key not in _DEFERRED_ATTRS})
        self._startPage()

    def add_internal_link(self, rect: LinkRect, target_index: int, *, source_index: int | None = None) -> None:
        index = self.page_index if source_index is None else source_index
        self._page_links.setdefault(index, []).append((rect, target_index))

    def _emit_links(self, index: int, total: int) -> None:
        for rect, target_index in self._page_links.get(index, []):
            if not 0 <= target_index < total:
                logger.debug('Skipping link on page %s to missing page %s', index, target_index)
                continue
            self._link_count += 1
            self.linkAbsolute(
                '',
                page_key(target_index),
                Rect=rect,
                name=f'internal-link-{self._link_count}',
                thickness=0,
            )

    def _flush_pages(self) -> None:
        if self._flushed:
            return
        if len(self._code):
            self.showPage()
        total = len(self._page_states)
        if total == 0:
            raise DocumentAssemblyError('document has no pages')
        states = self._page_states
        self._page_states = []
        for index, state in enumerate(states):
            self.__dict__.update(state)
            self.bookmarkPage(page_key(index))
            if self._page_decorator is not None:
                self._page_decorator(self, index, total)
            self._emit_links(index, total)
            canvas.Canvas.showPage(self)
        self._page_states = states
        self._flushed = True
        logger.debug('Emitted %s pages', total)

    @property
    def page_count(self) -> int:
        return len(self._page_states)

    def save(self) -> None:
        self._flush_pages()
        canvas.Canvas.save(self)

    def getpdfdata(self) -> bytes:
        self._flush_pages()
        return canvas.Canvas.getpdfdata(self)


class CanvasPainter:
    """Draws layout marks onto a :class:`DeferredPageCanvas`."""

    def __init__(self, pdf: DeferredPageCanvas, palette: Palette, *, page_size: tuple[float, float]) -> None:
        self.pdf = pdf
        self.palette = palette
        self.page_width, self.page_height = page_size

    def begin_page(self) -> None:
        if self.palette.page_bg is not None:
            self.rect(0, 0, self.page_width, self.page_height, fill=self.palette.page_bg)

    def finish_page(self) -> None:
        self.pdf.showPage()

    def new_page(self) -> None:
        self.finish_page()
        self.begin_page()

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
    ) -> None:
        if not text:
            return
        pdf = self.pdf
        pdf.saveState()
        pdf.setFillColor(color)
        if alpha < 1.0:
            pdf.setFillAlpha(alpha)
        pdf.setFont(font_name, font_size)
        pdf.drawString(x, y, text)
        pdf.restoreState()

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
    ) -> None:
        pdf = self.pdf
        pdf.saveState()
        pdf.setStrokeColor(color)
        if alpha < 1.0:
            pdf.setStrokeAlpha(alpha)
        pdf.setLineWidth(width)
        if dash:
            pdf.setDash(list(dash), 0)
        if round_cap:
            pdf.setLineCap(1)
        pdf.line(x1, y1, x2, y2)
        pdf.restoreState()

    def _shape(self, fill: Any, stroke: Any, stroke_width: float, alpha: float) -> tuple[int, int]:
        pdf = self.pdf
        if fill is not None:
            pdf.setFillColor(fill)
            if alpha < 1.0:
                pdf.setFillAlpha(alpha)
        if stroke is not None:
            pdf.setStrokeColor(stroke)
            pdf.setLineWidth(stroke_width)
            if alpha < 1.0:
                pdf.setStrokeAlpha(alpha)
        return (1 if stroke is not None else 0, 1 if fill is not None else 0)

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
    ) -> None:
        if fill is None and stroke is None:
            return
        self.pdf.saveState()
        do_stroke, do_fill = self._shape(fill, stroke, stroke_width, alpha)
        self.pdf.rect(x, y, width, height, stroke=do_stroke, fill=do_fill)
        self.pdf.restoreState()

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
    ) -> None:
        if fill is None and stroke is None:
            return
        self.pdf.saveState()
        do_stroke, do_fill = self._shape(fill, stroke, stroke_width, alpha)
        self.pdf.circle(x, y, radius, stroke=do_stroke, fill=do_fill)
        self.pdf.restoreState()

    def link(self, rect: LinkRect, target_index: int) -> None:
        self.pdf.add_internal_link(rect, target_index)
