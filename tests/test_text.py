"""
Tests for text measurement, wrapping and number formatting.
"""

import pytest

from equityreport.report.formatting import format_market_cap, format_number_cell, parse_price
from equityreport.report.text import (
    fit_font_size,
    measure,
    pdf_safe_text,
    split_word,
    wrap_runs,
    wrap_text,
)

LOREM = (
    'Revenue growth accelerated in the fourth quarter as enterprise demand for the '
    'platform broadened across regions, while gross margin expanded on a richer mix '
    'of subscription software and lower hardware freight costs.'
)


# --------------------------------------------------------------------------- #
# Wrapping
# --------------------------------------------------------------------------- #

class TestWrapText:
    def test_empty_input_yields_one_empty_line(self):
        assert wrap_text('', 'Helvetica', 10, 100) == ['']
        assert wrap_text('   \n\t ', 'Helvetica', 10, 100) == ['']
        assert wrap_text(None, 'Helvetica', 10, 100) == ['']

    def test_short_text_stays_on_one_line(self):
        assert wrap_text('Hello world.', 'Helvetica', 10, 400) == ['Hello world.']

    @pytest.mark.parametrize('width', [60, 120, 250, 483.28])
    def test_wrap_is_idempotent(self, width):
        text = LOREM + ' Supercalifragilisticexpialidociousness'
        lines = wrap_text(text, 'Helvetica', 10, width)
        assert wrap_text(' '.join(lines), 'Helvetica', 10, width) == lines

    @pytest.mark.parametrize(
        'text',
        ['i ' + 'W' * 25, 'ab ' + 'W' * 40 + ' ok', 'Revenue ' + 'x' * 60 + ' grew'],
    )
    def test_wrap_is_idempotent_after_forced_split(self, text):
        lines = wrap_text(text, 'Helvetica', 10, 100)
        assert wrap_text(' '.join(lines), 'Helvetica', 10, 100) == lines

    def test_forced_split_fills_the_open_line(self):
        assert wrap_text('i ' + 'W' * 25, 'Helvetica', 10, 100) == ['i ' + 'W' * 10, 'W' * 10, 'W' * 5]

    @pytest.mark.parametrize('width', [40, 90, 200])
    def test_lines_never_overflow(self, width):
        lines = wrap_text(LOREM + ' Pneumonoultramicroscopicsilicovolcanoconiosis', 'Helvetica', 10, width)
        for line in lines:
            assert measure(line, 'Helvetica', 10) <= width or len(line) == 1

    def test_long_word_is_force_split_and_tail_joins_next_word(self):
        assert wrap_text('abcdefij ok', 'Helvetica', 10, 30) == ['abcde', 'fij ok']

    def test_split_word_keeps_at_least_one_character(self):
        chunks = split_word('WWW', 'Helvetica', 10, 1)
        assert chunks == ['W', 'W', 'W']


class TestWrapRuns:
    def test_empty_runs(self):
        assert wrap_runs([], 10, 100) == [[]]

    def test_bold_words_fit_width(self):
        words = [(word, 'Helvetica-Bold' if index < 3 else 'Helvetica') for index, word in enumerate(LOREM.split())]
        lines = wrap_runs(words, 10, 200)
        assert [word for line in lines for word, _ in line] == LOREM.split()
        space = measure(' ', 'Helvetica', 10)
        for line in lines:
            width = sum(measure(word, font, 10) for word, font in line) + space * (len(line) - 1)
            assert width <= 200

    def test_forced_split_fills_the_open_line(self):
        lines = wrap_runs([('i', 'Helvetica'), ('W' * 25, 'Helvetica-Bold')], 10, 100)
        assert lines == [
            [('i', 'Helvetica'), ('W' * 10, 'Helvetica-Bold')],
            [('W' * 10, 'Helvetica-Bold')],
            [('W' * 5, 'Helvetica-Bold')],
        ]

    def test_fonts_are_preserved(self):
        lines = wrap_runs([('Key', 'Helvetica-Bold'), ('point', 'Helvetica')], 10, 500)
        assert lines == [[('Key', 'Helvetica-Bold'), ('point', 'Helvetica')]]


class TestFitFontSize:
    def test_short_text_keeps_max_size(self):
        assert fit_font_size('$15', 'Helvetica-Bold', 14, 8, 100) == 14

    def test_long_text_shrinks_to_min(self):
        assert fit_font_size('x' * 200, 'Helvetica-Bold', 14, 8, 50) == 8

    def test_shrinks_until_fits(self):
        text = '$1,234,567.89'
        size = fit_font_size(text, 'Helvetica-Bold', 14, 8, 70)
        assert 8 <= size < 14
        assert measure(text, 'Helvetica-Bold', size) <= 70 or size == 8


class TestPdfSafeText:
    def test_winansi_punctuation_is_kept(self):
        assert pdf_safe_text('Café – “quoted” €5') == 'Café – “quoted” €5'

    def test_unsupported_characters_are_replaced(self):
        assert pdf_safe_text('Price → $10') == 'Price ? $10'


# --------------------------------------------------------------------------- #
# Number formatting
# --------------------------------------------------------------------------- #

class TestFormatting:
    def test_market_cap_abbreviation(self):
        assert format_market_cap('1500000000') == '1.50B'
        assert format_market_cap('$2,400,000,000,000') == '2.40T'
        assert format_market_cap('7500000') == '7.50M'
        assert format_market_cap('12500') == '12.50K'

    def test_market_cap_passthrough(self):
        assert format_market_cap('2.3M') == '2.3M'
        assert format_market_cap('abc') == 'abc'
        assert format_market_cap('999') == '999'

    def test_market_cap_missing(self):
        assert format_market_cap('') == 'N/A'
        assert format_market_cap(None) == 'N/A'

    def test_parse_price(self):
        assert parse_price('$1,234.50') == 1234.5
        assert parse_price('USD 15') == 15.0
        assert parse_price('N/A') == 0.0
        assert parse_price('-') == 0.0
        assert parse_price('') == 0.0
        assert parse_price(None) == 0.0
        assert parse_price(12) == 12.0

    def test_number_cell_sign_convention(self):
        assert format_number_cell('-5.2') == '(5.2)'
        assert format_number_cell('(3.1)') == '(3.1)'
        assert format_number_cell('12.0') == '12.0'

    def test_number_cell_leaves_non_numeric_dashes(self):
        assert format_number_cell('-') == '-'
        assert format_number_cell('- see note') == '- see note'
        assert format_number_cell('-n/a') == '-n/a'

    def test_number_cell_currency_and_percent(self):
        assert format_number_cell('-$1,200') == '($1,200)'
        assert format_number_cell(' -4.5% ') == '(4.5%)'
