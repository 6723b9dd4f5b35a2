from __future__ import annotations

from typing import Any

import pytest

from equityreport.config import get_settings
from equityreport.report.text import get_report_fonts
from equityreport.types import CoverPageData, PriceTarget, Report


SCENARIO_MARKDOWN = (
    '## 1.0 Overview\n'
    'Hello world.\n'
    '\n'
    '## 2.0 Risks\n'
    '| Type | Description |\n'
    '|---|---|\n'
    '| Risk | Bad thing happens |\n'
)


class RecordingPainter:
    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple, dict[str, Any]]] = []
        self.pages = 1

    def new_page(self) -> None:
        self.pages += 1
        self.calls.append(('new_page', (), {}))

    def text(self, x: float, y: float, text: str, **kwargs: Any) -> None:
        self.calls.append(('text', (x, y, text), kwargs))

    def line(self, x1: float, y1: float, x2: float, y2: float, **kwargs: Any) -> None:
        self.calls.append(('line', (x1, y1, x2, y2), kwargs))

    def rect(self, x: float, y: float, width: float, height: float, **kwargs: Any) -> None:
        self.calls.append(('rect', (x, y, width, height), kwargs))

    def circle(self, x: float, y: float, radius: float, **kwargs: Any) -> None:
        self.calls.append(('circle', (x, y, radius), kwargs))

    def link(self, rect: tuple[float, float, float, float], target_index: int) -> None:
        self.calls.append(('link', (rect, target_index), {}))

    def of(self, kind: str) -> list[tuple[tuple, dict[str, Any]]]:
        return [(args, kwargs) for name, args, kwargs in self.calls if name == kind]

    def texts(self) -> list[str]:
        return [args[2] for args, _ in self.of('text')]


@pytest.fixture
def fonts():
    return get_report_fonts()


@pytest.fixture
def painter() -> RecordingPainter:
    return RecordingPainter()


@pytest.fixture
def cover_data() -> CoverPageData:
    return CoverPageData(
        company_name='Acme Corporation',
        ticker='ACME',
        report_title='Equity Research Report',
        report_date='2024-05-01',
        price_target=PriceTarget(worst='$10', base='$15', best='$20'),
        potential_upside='+12.5%',
        current_price='$15',
        market_cap='1500000000',
    )


@pytest.fixture
def scenario_report(cover_data: CoverPageData) -> Report:
    return Report(id=1, cover_page_data=cover_data, report_content=SCENARIO_MARKDOWN)


@pytest.fixture
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv('DATA_DIR', str(tmp_path / 'data'))
    monkeypatch.setenv('EXPORT_DELAY_SECONDS', '0')
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
