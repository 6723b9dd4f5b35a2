from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Mapping, Sequence, Union


logger = logging.getLogger(__name__)

ENUMERATION_PATTERN = re.compile(r'^\d+\.?\d*\.?\s*')
CAPTION_STRIP_PATTERN = re.compile(r'[*#_`]')
BOLD_HOOK_PATTERN = re.compile(r'^\*\*(.*?)\*\*')
TOC_SECTION_PATTERN = re.compile(
    r'^##[ \t]+(?:\*\*)?(?:\d+\.?\d*\.?\s*)?Table of Contents.*?(?=^##[ \t]|\Z)',
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)

TOC_HEADING = 'Table of Contents'
TOC_SEPARATOR = '|||'
NON_SECTION_TITLES = frozenset({'appendix', 'table of contents'})


@dataclass(frozen=True)
class Header:
    level: int
    text: str
    title: str

    @property
    def is_appendix(self) -> bool:
        return 'appendix' in self.text.lower()


@dataclass(frozen=True)
class Table:
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    in_appendix: bool = False


@dataclass(frozen=True)
class Bullet:
    text: str


@dataclass(frozen=True)
class Paragraph:
    text: str
    bold_words: int = 0
    follows_table: bool = False


@dataclass(frozen=True)
class TocEntry:
    title: str
    page: str
    indent: int = 0

    @property
    def is_subtopic(self) -> bool:
        return self.indent > 1

    @property
    def target_page(self) -> int | None:
        try:
            return int(self.page)
        except ValueError:
            return None


Block = Union[Header, Table, Bullet, Paragraph, TocEntry]


def clean_title(text: str) -> str:
    return ENUMERATION_PATTERN.sub('', text).strip()


def split_table_row(line: str) -> list[str]:
    return [cell.strip() for cell in line.split('|')[1:-1]]


def _build_table(buffer: Sequence[str], *, in_appendix: bool) -> Table | None:
    if len(buffer) < 2:
        logger.debug('Dropping table without separator row: %r', buffer[0] if buffer else '')
        return None
    headers = tuple(cell.replace('**', '') for cell in split_table_row(buffer[0]))
    if not headers:
        logger.debug('Dropping table without header cells')
        return None
    rows = tuple(tuple(split_table_row(line)) for line in buffer[2:])
    return Table(headers=headers, rows=rows, in_appendix=in_appendix)


def _parse_paragraph(trimmed: str, *, follows_table: bool) -> Paragraph | None:
    if follows_table:
        text = ' '.join(CAPTION_STRIP_PATTERN.sub('', trimmed).split())
        if not text:
            return None
        return Paragraph(text=text, follows_table=True)

    hook = BOLD_HOOK_PATTERN.match(trimmed)
    bold_words = len(hook.group(1).split()) if hook else 0
    text = ' '.join(trimmed.replace('**', '').split())
    if not text:
        return None
    return Paragraph(text=text, bold_words=bold_words)


def _parse_toc_entry(raw_line: str, text: str) -> TocEntry | None:
    parts = text.split(TOC_SEPARATOR)
    if len(parts) != 2:
        return None
    indent = len(raw_line) - len(raw_line.lstrip())
    return TocEntry(title=parts[0].strip(), page=parts[1].strip(), indent=indent)


def parse_markdown(markdown: str, *, toc: bool = False) -> list[Block]:
    """Classify markdown lines into the block sequence replayed by every layout pass.

    Only the report subset is recognized: ``##``/``###`` headers, ``* ``/``- ``
    bullets, leading ``**bold**`` hooks and pipe tables. In ``toc`` mode bullets of
    the form ``Title ||| N`` become table-of-contents entries.
    """
    blocks: list[Block] = []
    table_buffer: list[str] = []
    in_appendix = False
    after_table = False

    def flush_table() -> None:
        nonlocal after_table
        if not table_buffer:
            return
        table = _build_table(table_buffer, in_appendix=in_appendix)
        table_buffer.clear()
        if table is not None:
            blocks.append(table)
            after_table = True

    for line in (markdown or '').split('\n'):
        trimmed = line.strip()
        if trimmed.startswith('|'):
            table_buffer.append(trimmed)
            after_table = False
            continue
        flush_table()

        if trimmed.startswith('## ') or trimmed.startswith('### '):
            after_table = False
            level = 2 if trimmed.startswith('## ') else 3
            text = trimmed[level + 1 :].strip().replace('**', '')
            if 'appendix' in text.lower():
                in_appendix = True
            blocks.append(Header(level=level, text=text, title=clean_title(text)))
        elif trimmed.startswith('* ') or trimmed.startswith('- '):
            after_table = False
            text = trimmed[2:].replace('**', '')
            entry = _parse_toc_entry(line, text) if toc else None
            if entry is not None:
                blocks.append(entry)
            else:
                blocks.append(Bullet(text=text.strip()))
        elif trimmed:
            paragraph = _parse_paragraph(trimmed, follows_table=after_table)
            after_table = False
            if paragraph is not None:
                blocks.append(paragraph)
        else:
            after_table = False

    flush_table()
    return blocks


def strip_table_of_contents(markdown: str) -> str:
    return TOC_SECTION_PATTERN.sub('', markdown or '').strip()


def is_section_title(title: str) -> bool:
    return title.lower() not in NON_SECTION_TITLES


def collect_sections(blocks: Sequence[Block]) -> list[str]:
    sections: list[str] = []
    for block in blocks:
        if isinstance(block, Header) and block.level == 2 and is_section_title(block.title):
            if block.title not in sections:
                sections.append(block.title)
    return sections


def build_toc_markdown(
    blocks: Sequence[Block],
    header_pages: Mapping[str, int],
    page_offset: int,
) -> str:
    lines = [f'## {TOC_HEADING}', '']
    h2_counter = 0
    h3_counter = 0
    for block in blocks:
        if not isinstance(block, Header):
            continue
        page = header_pages.get(block.text)
        if page is None:
            continue
        if block.level == 2:
            h2_counter += 1
            h3_counter = 0
            lines.append(f'* {h2_counter}.0 {block.title} {TOC_SEPARATOR} {page + page_offset}')
        else:
            h3_counter += 1
            lines.append(f'  * {h2_counter}.{h3_counter} {block.title} {TOC_SEPARATOR} {page + page_offset}')
    return '\n'.join(lines) + '\n'
