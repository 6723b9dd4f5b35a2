"""
End-to-end tests for the report PDF renderer.

The rendered bytes are read back with pypdf to check page count, footers,
internal link destinations and document metadata.
"""

import io
import itertools
from types import SimpleNamespace

import pytest
from pypdf import PdfReader

from equityreport.report import pdf_export
from equityreport.report.blocks import parse_markdown
from equityreport.report.layout import simulate_layout
from equityreport.report.pdf_export import generate_report_pdf, render_report
from equityreport.types import DocumentAssemblyError, Report, ThemeName


def _reader(pdf_bytes):
    return PdfReader(io.BytesIO(pdf_bytes))


def _annotations(page):
    return [annotation.get_object() for annotation in page.get('/Annots', [])]


def _destination_index(reader, annotation):
    destination = annotation['/Dest'].get_object()
    target = destination[0].idnum
    for index, page in enumerate(reader.pages):
        if page.indirect_reference.idnum == target:
            return index
    return None


def _sections_report(cover_data, count):
    content = ''.join(f'## Section {n}\nShort body text for section {n}.\n\n' for n in range(1, count + 1))
    return Report(id=7, cover_page_data=cover_data, report_content=content)


# --------------------------------------------------------------------------- #
# Document structure
# --------------------------------------------------------------------------- #

class TestRenderReport:
    def test_scenario_structure(self, scenario_report):
        result = render_report(scenario_report, 'classic')
        assert result.page_count >= 3
        assert result.body_start_index == 2
        assert [entry.title for entry in result.toc_entries] == ['1.0 Overview', '2.0 Risks']
        for entry in result.toc_entries:
            assert int(entry.page) >= 3

    def test_toc_pages_match_header_positions(self, scenario_report):
        result = render_report(scenario_report)
        for entry, header in zip(result.toc_entries, ('1.0 Overview', '2.0 Risks')):
            page_index, _ = result.header_positions[header]
            assert page_index == int(entry.page) - 1

    def test_page_count_matches_pdf(self, scenario_report):
        result = render_report(scenario_report)
        assert len(_reader(result.pdf_bytes).pages) == result.page_count

    def test_footer_and_body_text(self, scenario_report):
        result = render_report(scenario_report)
        reader = _reader(result.pdf_bytes)
        total = result.page_count
        assert f'Page 2 of {total}' in reader.pages[1].extract_text()
        body_text = reader.pages[2].extract_text()
        assert f'Page 3 of {total}' in body_text
        assert 'Bad thing happens' in body_text
        assert 'Hello' in body_text

    def test_cover_has_no_footer(self, scenario_report):
        result = render_report(scenario_report)
        cover_text = _reader(result.pdf_bytes).pages[0].extract_text()
        assert 'Page 1 of' not in cover_text
        assert 'ACME' in cover_text

    def test_toc_links_resolve_to_header_pages(self, scenario_report):
        result = render_report(scenario_report)
        reader = _reader(result.pdf_bytes)
        annotations = _annotations(reader.pages[1])
        assert len(annotations) == 2
        for annotation in annotations:
            assert annotation['/Subtype'] == '/Link'
            assert _destination_index(reader, annotation) == 2

    def test_navigator_links_on_body_pages(self, scenario_report):
        result = render_report(scenario_report)
        reader = _reader(result.pdf_bytes)
        annotations = _annotations(reader.pages[2])
        # table of contents dot plus one dot per section
        assert len(annotations) == 3
        targets = sorted(_destination_index(reader, annotation) for annotation in annotations)
        assert targets == [1, 2, 2]

    def test_metadata(self, scenario_report):
        result = render_report(scenario_report, author='Desk', producer='unit-test')
        metadata = _reader(result.pdf_bytes).metadata
        assert metadata.title == 'Equity Research Report - ACME'
        assert metadata.author == 'Desk'
        assert metadata.producer == 'unit-test'

    def test_generate_report_pdf_returns_bytes(self, scenario_report):
        pdf_bytes = generate_report_pdf(scenario_report, 'ocean')
        assert pdf_bytes.startswith(b'%PDF')

    def test_embedded_toc_is_replaced(self, scenario_report):
        content = '## Table of Contents\n* 1.0 Old entry ||| 99\n\n' + scenario_report.report_content
        report = scenario_report.model_copy(update={'report_content': content})
        result = render_report(report)
        assert [entry.title for entry in result.toc_entries] == ['1.0 Overview', '2.0 Risks']

    def test_text_outside_the_font_encoding(self, scenario_report):
        content = scenario_report.report_content + '\nRevenue → up 日本 – steady.\n'
        report = scenario_report.model_copy(update={'report_content': content})
        result = render_report(report)
        assert len(_reader(result.pdf_bytes).pages) == result.page_count

    def test_empty_content_still_renders(self, cover_data):
        result = render_report(Report(id=3, cover_page_data=cover_data, report_content=''))
        assert result.toc_entries == []
        assert result.page_count == 3


class TestThemes:
    @pytest.mark.parametrize(
        ('requested', 'expected'),
        [
            ('midnight', ThemeName.graphite),
            ('no-such-theme', ThemeName.classic),
            (None, ThemeName.classic),
            ('Quantum', ThemeName.quantum),
            (ThemeName.emerald, ThemeName.emerald),
        ],
    )
    def test_theme_resolution(self, scenario_report, requested, expected):
        assert render_report(scenario_report, requested).theme == expected

    @pytest.mark.parametrize('theme', list(ThemeName))
    def test_every_theme_renders(self, scenario_report, theme):
        result = render_report(scenario_report, theme)
        assert len(_reader(result.pdf_bytes).pages) == result.page_count


# --------------------------------------------------------------------------- #
# Table of contents overflow and integrity checks
# --------------------------------------------------------------------------- #

class TestTableOfContentsOverflow:
    def test_long_toc_shifts_body(self, cover_data):
        result = render_report(_sections_report(cover_data, 80))
        assert result.body_start_index > 2
        assert len(result.toc_entries) == 80
        for n, entry in enumerate(result.toc_entries, start=1):
            page_index, _ = result.header_positions[f'Section {n}']
            assert page_index == int(entry.page) - 1
            assert page_index >= result.body_start_index

    def test_long_toc_links_land_on_body_pages(self, cover_data):
        result = render_report(_sections_report(cover_data, 80))
        reader = _reader(result.pdf_bytes)
        first = _annotations(reader.pages[1])[0]
        assert _destination_index(reader, first) == result.header_positions['Section 1'][0]

    def test_unsettled_toc_raises(self, fonts, monkeypatch):
        blocks = parse_markdown('## Overview\nHello.\n')
        layout = simulate_layout(blocks, fonts)
        page_counts = itertools.cycle([2, 1])
        monkeypatch.setattr(
            pdf_export,
            'simulate_layout',
            lambda toc_blocks, toc_fonts: SimpleNamespace(page_count=next(page_counts)),
        )
        with pytest.raises(DocumentAssemblyError):
            pdf_export._plan_table_of_contents(blocks, layout, fonts)

    def test_page_count_mismatch_raises(self, scenario_report):
        result = render_report(scenario_report)
        with pytest.raises(DocumentAssemblyError):
            pdf_export._verify_page_count(result.pdf_bytes, result.page_count + 1)

    def test_unreadable_pdf_raises(self):
        with pytest.raises(DocumentAssemblyError):
            pdf_export._verify_page_count(b'', 1)
