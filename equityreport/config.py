from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from equityreport.types import ThemeName


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'Equity Report PDF Exporter'

    data_dir: Path = Field(default=Path('./data'))

    default_theme: ThemeName = Field(
        default=ThemeName.classic,
        validation_alias=AliasChoices('DEFAULT_THEME', 'REPORT_THEME'),
    )
    # Pause between documents in batch mode, matching the UI download pacing.
    export_delay_seconds: float = 0.5
    log_level: str = 'INFO'

    # PDF metadata and fixed page text
    pdf_title_prefix: str = 'Equity Research Report'
    pdf_author: str = 'Money Grow On Tree Reporting'
    pdf_producer: str = 'equityreport'
    brand_text: str = 'Money Grow On Tree Reporting'
    footer_disclaimer: str = (
        'This report is strictly for educational and informational purposes, not financial advice.'
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    (settings.data_dir / 'exports').mkdir(parents=True, exist_ok=True)
    return settings
