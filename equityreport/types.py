from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportRenderError(RuntimeError):
    pass


class DocumentAssemblyError(ReportRenderError):
    pass


class CoverDataError(ReportRenderError, ValueError):
    pass


class ThemeName(str, Enum):
    default = 'default'
    classic = 'classic'
    slate = 'slate'
    graphite = 'graphite'
    crimson = 'crimson'
    emerald = 'emerald'
    ocean = 'ocean'
    sunrise = 'sunrise'
    paper = 'paper'
    forest = 'forest'
    royal = 'royal'
    industrial = 'industrial'
    quantum = 'quantum'


class _ContractModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra='ignore',
        frozen=True,
    )


class PriceTarget(_ContractModel):
    worst: str = ''
    base: str = ''
    best: str = ''


class CoverPageData(_ContractModel):
    company_name: str = ''
    ticker: str = ''
    report_title: str = ''
    report_date: str = ''
    price_target: PriceTarget = Field(default_factory=PriceTarget)
    potential_upside: str = ''
    current_price: str = ''
    market_cap: str = ''
    industry_category: str | None = None


class Report(_ContractModel):
    id: int = 0
    cover_page_data: CoverPageData
    report_content: str = ''


class ExportStatus(str, Enum):
    rendered = 'rendered'
    failed = 'failed'


class ExportRecord(BaseModel):
    report_id: int
    ticker: str
    theme: ThemeName
    status: ExportStatus
    output_path: str | None = None
    page_count: int = 0
    size_bytes: int = 0
    error: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)
