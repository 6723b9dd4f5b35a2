from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from reportlab.lib import colors

from equityreport.types import ThemeName


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Palette:
    sidebar_bg: colors.Color
    main_text: colors.Color
    accent: colors.Color
    table_header_bg: colors.Color
    table_border: colors.Color
    h2_border: colors.Color
    page_bg: colors.Color | None = None


def _palette(
    *,
    sidebar_bg: str,
    main_text: str,
    accent: str,
    table_header_bg: str,
    table_border: str,
    h2_border: str,
    page_bg: str | None = None,
) -> Palette:
    return Palette(
        sidebar_bg=colors.HexColor(sidebar_bg),
        main_text=colors.HexColor(main_text),
        accent=colors.HexColor(accent),
        table_header_bg=colors.HexColor(table_header_bg),
        table_border=colors.HexColor(table_border),
        h2_border=colors.HexColor(h2_border),
        page_bg=colors.HexColor(page_bg) if page_bg else None,
    )


THEME_PALETTES: Mapping[ThemeName, Palette] = MappingProxyType(
    {
        ThemeName.default: _palette(
            sidebar_bg='#4F46E5',
            main_text='#1F2937',
            accent='#6366F1',
            table_header_bg='#F3F4F6',
            table_border='#D1D5DB',
            h2_border='#6366F1',
        ),
        ThemeName.classic: _palette(
            sidebar_bg='#001F3F',
            main_text='#333333',
            accent='#D4AF37',
            table_header_bg='#E6EDF3',
            table_border='#D1D5DB',
            h2_border='#D4AF37',
        ),
        ThemeName.slate: _palette(
            sidebar_bg='#2D3748',
            main_text='#2D3748',
            accent='#4FD1C5',
            table_header_bg='#F7FAFC',
            table_border='#E2E8F0',
            h2_border='#4FD1C5',
        ),
        ThemeName.graphite: _palette(
            sidebar_bg='#1F2937',
            main_text='#D1D5DB',
            page_bg='#111827',
            accent='#38BDF8',
            table_header_bg='#1F2937',
            table_border='#4B5563',
            h2_border='#38BDF8',
        ),
        ThemeName.crimson: _palette(
            sidebar_bg='#991B1B',
            main_text='#3F2525',
            page_bg='#FEF2F2',
            accent='#B91C1C',
            table_header_bg='#FEE2E2',
            table_border='#FECACA',
            h2_border='#B91C1C',
        ),
        ThemeName.emerald: _palette(
            sidebar_bg='#065F46',
            main_text='#14532D',
            page_bg='#F0FDF4',
            accent='#CA8A04',
            table_header_bg='#DCFCE7',
            table_border='#BBF7D0',
            h2_border='#15803D',
        ),
        ThemeName.ocean: _palette(
            sidebar_bg='#1E3A8A',
            main_text='#1E3A8A',
            page_bg='#EFF6FF',
            accent='#2563EB',
            table_header_bg='#DBEAFE',
            table_border='#BFDBFE',
            h2_border='#2563EB',
        ),
        ThemeName.sunrise: _palette(
            sidebar_bg='#9A3412',
            main_text='#7C2D12',
            page_bg='#FFF7ED',
            accent='#EA580C',
            table_header_bg='#FFEDD5',
            table_border='#FED7AA',
            h2_border='#EA580C',
        ),
        ThemeName.paper: _palette(
            sidebar_bg='#D4C8BC',
            main_text='#403830',
            page_bg='#FDFCF9',
            accent='#8C7E70',
            table_header_bg='#E7E2DB',
            table_border='#DCD5CC',
            h2_border='#A69888',
        ),
        ThemeName.forest: _palette(
            sidebar_bg='#365314',
            main_text='#365314',
            page_bg='#F7FEE7',
            accent='#65A30D',
            table_header_bg='#ECFCCB',
            table_border='#D9F99D',
            h2_border='#65A30D',
        ),
        ThemeName.royal: _palette(
            sidebar_bg='#5B21B6',
            main_text='#5B21B6',
            page_bg='#F5F3FF',
            accent='#7C3AED',
            table_header_bg='#EDE9FE',
            table_border='#DDD6FE',
            h2_border='#7C3AED',
        ),
        ThemeName.industrial: _palette(
            sidebar_bg='#374151',
            main_text='#1F2937',
            page_bg='#F3F4F6',
            accent='#F59E0B',
            table_header_bg='#E5E7EB',
            table_border='#D1D5DB',
            h2_border='#F59E0B',
        ),
        ThemeName.quantum: _palette(
            sidebar_bg='#020617',
            main_text='#E2E8F0',
            page_bg='#0C1427',
            accent='#22D3EE',
            table_header_bg='#1E293B',
            table_border='#334155',
            h2_border='#22D3EE',
        ),
    }
)

LEGACY_THEME_ALIASES: Mapping[str, ThemeName] = MappingProxyType({'midnight': ThemeName.graphite})
FALLBACK_THEME = ThemeName.classic


def resolve_theme_name(theme: ThemeName | str | None) -> ThemeName:
    if isinstance(theme, ThemeName):
        return theme
    key = str(theme or '').strip().lower()
    if key in LEGACY_THEME_ALIASES:
        return LEGACY_THEME_ALIASES[key]
    try:
        return ThemeName(key)
    except ValueError:
        if key:
            logger.warning('Unknown theme %r, falling back to %s', theme, FALLBACK_THEME.value)
        return FALLBACK_THEME


def resolve_palette(theme: ThemeName | str | None) -> Palette:
    return THEME_PALETTES[resolve_theme_name(theme)]
