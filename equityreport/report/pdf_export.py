from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

from pypdf import PdfReader
from pypdf.errors import PdfReadError
from reportlab.lib.pagesizes import A4

from equityreport.types import DocumentAssemblyError, Report, ThemeName

from .blocks import Block, TocEntry, build_toc_markdown, parse_markdown, strip_table_of_contents
from .canvas import CanvasPainter, DeferredPageCanvas
from .cover import DEFAULT_BRAND_TEXT, draw_cover_page
from .layout import BlockLayout, LayoutResult, simulate_layout
from .navigation import DEFAULT_DISCLAIMER, PageDecorations
from .text import ReportFonts, get_report_fonts, pdf_safe_text
from .themes import resolve_palette, resolve_theme_name


logger = logging.getLogger(__name__)

COVER_PAGES = 1
MAX_TOC_PASSES = 8
DEFAULT_TITLE_PREFIX = 'Equity Research Report'
DEFAULT_AUTHOR = 'Money Grow On Tree Reporting'
DEFAULT_PRODUCER = 'equityreport'


@dataclass
class RenderResult:
    pdf_bytes: bytes
    page_count: int
    toc_entries: list[TocEntry] = field(default_factory=list)
    header_positions: dict[str, tuple[int, float]] = field(default_factory=dict)
    body_start_index: int = 2
    theme: ThemeName = ThemeName.classic


def _plan_table_of_contents(
    blocks: list[Block],
    layout: LayoutResult,
    fonts: ReportFonts,
) -> tuple[int, list[Block]]:
    page_offset = COVER_PAGES + 1
    for attempt in range(1, MAX_TOC_PASSES + 1):
        toc_blocks = parse_markdown(build_toc_markdown(blocks, layout.header_pages, page_offset), toc=True)
        toc_pages = simulate_layout(toc_blocks, fonts).page_count
        required_offset = COVER_PAGES + toc_pages
        logger.debug('TOC pass %s: %s page(s), offset %s', attempt, toc_pages, page_offset)
        if required_offset == page_offset:
            return page_offset, toc_blocks
        page_offset = required_offset
    raise DocumentAssemblyError(f'table of contents did not settle after {MAX_TOC_PASSES} passes')


def _verify_page_count(pdf_bytes: bytes, expected: int) -> None:
    try:
        actual = len(PdfReader(io.BytesIO(pdf_bytes)).pages)
    except PdfReadError as exc:
        raise DocumentAssemblyError(f'rendered PDF could not be read back: {exc}') from exc
    if actual != expected:
        raise DocumentAssemblyError(f'rendered PDF has {actual} pages, expected {expected}')


def render_report(
    report: Report,
    theme: ThemeName | str | None = None,
    *,
    title_prefix: str = DEFAULT_TITLE_PREFIX,
    author: str = DEFAULT_AUTHOR,
    producer: str = DEFAULT_PRODUCER,
    brand_text: str = DEFAULT_BRAND_TEXT,
    disclaimer: str = DEFAULT_DISCLAIMER,
) -> RenderResult:
    theme_name = resolve_theme_name(theme)
    palette = resolve_palette(theme_name)
    fonts = get_report_fonts()
    cover = report.cover_page_data

    body_markdown = strip_table_of_contents(pdf_safe_text(report.report_content))
    blocks = parse_markdown(body_markdown)
    simulated = simulate_layout(blocks, fonts)
    page_offset, toc_blocks = _plan_table_of_contents(blocks, simulated, fonts)
    toc_page_count = page_offset - COVER_PAGES

    decorations = PageDecorations(
        palette=palette,
        fonts=fonts,
        body_start_index=page_offset,
        toc_index=COVER_PAGES,
        sections=simulated.sections,
        section_pages=simulated.section_pages,
        page_sections=simulated.page_sections,
        disclaimer=pdf_safe_text(disclaimer),
    )
    buffer = io.BytesIO()
    pdf = DeferredPageCanvas(buffer, pagesize=A4, page_decorator=decorations)
    pdf.setTitle(pdf_safe_text(f'{title_prefix} - {cover.ticker}' if cover.ticker else title_prefix))
    pdf.setAuthor(pdf_safe_text(author))
    pdf.setProducer(pdf_safe_text(producer))
    pdf.setSubject(pdf_safe_text(cover.report_title or cover.company_name))
    painter = CanvasPainter(pdf, palette, page_size=A4)

    draw_cover_page(painter, cover, palette=palette, fonts=fonts, brand_text=brand_text)
    painter.finish_page()

    painter.begin_page()
    toc_drawn = BlockLayout(painter, fonts=fonts, palette=palette).run(toc_blocks)
    painter.finish_page()
    if toc_drawn.page_count != toc_page_count:
        raise DocumentAssemblyError(
            f'table of contents drew {toc_drawn.page_count} page(s), planned {toc_page_count}'
        )

    painter.begin_page()
    body_drawn = BlockLayout(painter, fonts=fonts, palette=palette, sections=simulated.sections).run(blocks)
    painter.finish_page()
    if body_drawn.header_pages != simulated.header_pages or body_drawn.page_count != simulated.page_count:
        raise DocumentAssemblyError('draw pass diverged from the simulated layout')

    pdf_bytes = pdf.getpdfdata()
    expected_pages = COVER_PAGES + toc_page_count + body_drawn.page_count
    if pdf.page_count != expected_pages:
        raise DocumentAssemblyError(f'canvas emitted {pdf.page_count} pages, expected {expected_pages}')
    _verify_page_count(pdf_bytes, expected_pages)

    header_positions = {
        text: (page_offset + page - 1, y) for text, (page, y) in body_drawn.header_positions.items()
    }
    logger.info(
        'Rendered report %s (%s) with theme %s: %s pages, %s bytes',
        report.id,
        cover.ticker or '-',
        theme_name.value,
        expected_pages,
        len(pdf_bytes),
    )
    return RenderResult(
        pdf_bytes=pdf_bytes,
        page_count=expected_pages,
        toc_entries=[block for block in toc_blocks if isinstance(block, TocEntry)],
        header_positions=header_positions,
        body_start_index=page_offset,
        theme=theme_name,
    )


def generate_report_pdf(report: Report, theme: ThemeName | str | None = None) -> bytes:
    return render_report(report, theme).pdf_bytes
