"""
Tests for the cover page and the price target visualizer.
"""

import pytest

from equityreport.report.cover import (
    COMPANY_NAME_MIN_SIZE,
    PriceLabel,
    compute_price_scale,
    draw_cover_page,
    draw_price_target_visualizer,
    fit_company_name,
    place_labels,
)
from equityreport.report.themes import resolve_palette
from equityreport.types import PriceTarget


def _with_prices(cover_data, *, worst, base, best, current):
    return cover_data.model_copy(
        update={
            'price_target': PriceTarget(worst=worst, base=base, best=best),
            'current_price': current,
        }
    )


# --------------------------------------------------------------------------- #
# Price scale
# --------------------------------------------------------------------------- #

class TestPriceScale:
    def test_positions_within_bounds(self, cover_data):
        scale = compute_price_scale(cover_data)
        assert scale is not None
        for position in (scale.worst_position, scale.base_position, scale.best_position, scale.current_position):
            assert 0 <= position <= 100
        assert scale.base_position == scale.current_position

    def test_padding_and_bar_range(self, cover_data):
        scale = compute_price_scale(cover_data)
        assert scale.bar_start == pytest.approx(10 - 1.5)
        assert scale.bar_end == pytest.approx(20 + 1.5)
        assert scale.worst_position < scale.base_position < scale.best_position

    def test_degenerate_single_point(self, cover_data):
        scale = compute_price_scale(_with_prices(cover_data, worst='10', base='10', best='10', current='10'))
        assert scale.bar_start == pytest.approx(9)
        assert scale.bar_end == pytest.approx(11)
        assert scale.current_position == pytest.approx(50)

    def test_bar_start_never_negative(self, cover_data):
        scale = compute_price_scale(_with_prices(cover_data, worst='$1', base='$50', best='$100', current='$2'))
        assert scale.bar_start == 0

    def test_positions_are_clamped(self, cover_data):
        scale = compute_price_scale(cover_data)
        assert scale.position(-1000) == 0
        assert scale.position(1000) == 100

    @pytest.mark.parametrize(
        'prices',
        [
            {'worst': '$10', 'base': 'N/A', 'best': '$20', 'current': '$15'},
            {'worst': '$10', 'base': '$15', 'best': '', 'current': '$15'},
            {'worst': '$10', 'base': '$15', 'best': '$20', 'current': 'unknown'},
            {'worst': '$10', 'base': '-$15', 'best': '$20', 'current': '$15'},
            {'worst': '$10', 'base': '$15', 'best': '$20', 'current': '-3'},
        ],
    )
    def test_unparseable_prices_skip_visualizer(self, cover_data, painter, fonts, prices):
        data = _with_prices(cover_data, **prices)
        assert compute_price_scale(data) is None
        y = draw_price_target_visualizer(
            painter,
            data,
            palette=resolve_palette('classic'),
            fonts=fonts,
            x_start=258,
            y_start=500,
            width=307,
        )
        assert y == 480
        assert painter.calls == []


class TestLabelPlacement:
    def _place(self, *positions):
        labels = [PriceLabel(name, '$1', position, None) for name, position in zip(('Worst', 'Base', 'Best'), positions)]
        return place_labels(labels, width=307, font_name='Helvetica')

    def test_far_apart_labels_share_the_first_row(self):
        assert [label.row for label in self._place(5, 50, 95)] == [0, 0, 0]

    def test_base_close_to_worst_is_pushed_down(self):
        assert [label.row for label in self._place(10, 20, 80)] == [0, 1, 0]

    def test_best_close_to_base_is_pushed_down(self):
        assert [label.row for label in self._place(10, 50, 60)] == [0, 0, 1]

    def test_three_way_tie_stacks(self):
        assert [label.row for label in self._place(50, 50, 50)] == [0, 1, 2]

    def test_wide_labels_outside_the_minimum_distance_are_pushed_down(self):
        labels = [
            PriceLabel('Worst', '$1,000.00', 11.5, None),
            PriceLabel('Base', '$1,510.00', 31.2, None),
        ]
        assert [label.row for label in place_labels(labels, width=307, font_name='Helvetica')] == [0, 1]


# --------------------------------------------------------------------------- #
# Cover page
# --------------------------------------------------------------------------- #

class TestCoverPage:
    def test_visualizer_draws_markers_and_labels(self, cover_data, painter, fonts):
        y = draw_price_target_visualizer(
            painter,
            cover_data,
            palette=resolve_palette('ocean'),
            fonts=fonts,
            x_start=258,
            y_start=500,
            width=307,
        )
        assert y == 410
        texts = painter.texts()
        assert texts == ['Worst: $10', 'Base: $15', 'Best: $20', 'Current: $15']
        # four markers, each a halo and a ring
        assert len(painter.of('circle')) == 8

    def test_label_patches_never_overlap(self, cover_data, painter, fonts):
        data = _with_prices(cover_data, worst='$1,000.00', base='$1,510.00', best='$3,000.00', current='$1,000.00')
        draw_price_target_visualizer(
            painter,
            data,
            palette=resolve_palette('classic'),
            fonts=fonts,
            x_start=258,
            y_start=500,
            width=307,
        )
        patches = [args for args, kwargs in painter.of('rect') if kwargs.get('alpha') == 0.9]
        assert len(patches) == 3
        for index, (x1, y1, w1, h1) in enumerate(patches):
            for x2, y2, w2, h2 in patches[index + 1:]:
                overlaps_x = x1 < x2 + w2 and x2 < x1 + w1
                overlaps_y = y1 < y2 + h2 and y2 < y1 + h1
                assert not (overlaps_x and overlaps_y)

    def test_cover_contents(self, cover_data, painter, fonts):
        draw_cover_page(painter, cover_data, palette=resolve_palette('graphite'), fonts=fonts)
        texts = painter.texts()
        assert texts[0] == 'Money Grow On Tree Reporting'
        for expected in (
            'Equity Research Report',
            'Acme',
            'Corporation',
            'ACME',
            'Current Price',
            'Market Cap',
            '1.50B',
            'Potential Upside (Base)',
            '+12.5%',
            'Report Date: 2024-05-01',
        ):
            assert expected in texts
        # sidebar and main-region background for a theme with a page color
        fills = [args for args, kwargs in painter.of('rect')[:2]]
        assert fills[0][0] == 0
        assert fills[1][0] == pytest.approx(fills[0][2])

    def test_cover_without_page_background(self, cover_data, painter, fonts):
        draw_cover_page(painter, cover_data, palette=resolve_palette('classic'), fonts=fonts)
        first, second = painter.of('rect')[:2]
        assert first[0][0] == 0
        # next fill is the price track, not a main-region background
        assert second[1].get('alpha') == 0.5

    def test_custom_brand_text(self, cover_data, painter, fonts):
        draw_cover_page(painter, cover_data, palette=resolve_palette('classic'), fonts=fonts, brand_text='House View')
        assert painter.texts()[0] == 'House View'

    def test_company_name_shrinks_to_two_lines(self, fonts):
        size, lines = fit_company_name('International Consolidated Holdings Group Incorporated', fonts.bold, 307)
        assert size < 38
        assert len(lines) <= 2 or size == COMPANY_NAME_MIN_SIZE

    def test_company_name_overflow_accepted_at_minimum(self, fonts):
        name = ' '.join(['Extraordinarily'] * 12)
        size, lines = fit_company_name(name, fonts.bold, 307)
        assert size == COMPANY_NAME_MIN_SIZE
        assert len(lines) > 2
