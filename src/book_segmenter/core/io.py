"""
Input/Output module: reading sources, naming and writing pages.
Модуль ввода/вывода: чтение исходников, имена и запись страниц.

This module handles:
Этот модуль обрабатывает:
- Markdown reading with newline normalisation / Чтение Markdown с нормализацией переводов строк
- Source basename codec ``core-suffix1-suffix2`` / Кодек имён файлов
- Navigation backlinks and the page index note / Обратные ссылки и оглавление страниц
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import yaml

from .types import SegmentationResult, SourceNameInfo

SUFFIX_DELIMITER = "-"
INDEX_PREFIX = "__"
PAGE_FRONTMATTER: Dict[str, str] = {"noteType": "Page", "status": "NotStarted"}
NOT_STARTED_CHECKBOX = "- [ ]"

# [[__-Märchen|← Märchen]] в первой строке
_BACKLINK_LINE_RE = re.compile(r"\A[ \t]*\[\[__[^\]|]*\|←[^\]]*\]\][ \t]*(?:\n|\Z)")
_FRONTMATTER_RE = re.compile(r"\A---\n[\s\S]*?\n---[ \t]*(?:\n|\Z)")


def read_markdown(path: str | Path) -> str:
    """
    Read a Markdown file as UTF-8 with ``\\r\\n`` / ``\\r`` normalised to ``\\n``.
    Читает Markdown-файл (UTF-8), нормализуя переводы строк.
    """
    raw = Path(path).read_text(encoding="utf-8")
    return re.sub(r"\r\n?", "\n", raw)


def save_markdown(md: str, out_path: str | Path) -> None:
    """
    Save Markdown text to a file, creating parent directories.
    Сохраняет текст Markdown в файл, создавая родительские директории.
    """
    out_p = Path(out_path)
    out_p.parent.mkdir(parents=True, exist_ok=True)
    out_p.write_text(md, encoding="utf-8")


def save_jsonl(rows: Iterable[Dict], out_path: str | Path) -> None:
    """One JSON object per line / Один JSON-объект на строку."""
    out_p = Path(out_path)
    out_p.parent.mkdir(parents=True, exist_ok=True)
    with out_p.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False) + "\n")


# =============================================================================
# Basename codec / Кодек имён
# =============================================================================
def parse_source_name(basename: str, delimiter: str = SUFFIX_DELIMITER) -> SourceNameInfo:
    """
    ``"Aschenputtel-Märchen-Grimm.md"`` → core ``Aschenputtel``,
    suffix ``("Märchen", "Grimm")``. Empty parts are dropped.
    """
    stem = Path(basename).name
    if stem.lower().endswith(".md"):
        stem = stem[:-3]
    parts = [p for p in stem.split(delimiter) if p]
    if not parts:
        return SourceNameInfo(core_name=stem)
    return SourceNameInfo(core_name=parts[0], suffix=tuple(parts[1:]))


def build_page_basename(
    page_index: int, core_name: str, suffix: Sequence[str] = (), delimiter: str = SUFFIX_DELIMITER
) -> str:
    """Page files: ``000-core-suffix`` (zero-padded, sorts naturally)."""
    return delimiter.join([f"{page_index:03d}", core_name, *suffix])


def build_index_basename(core_name: str, suffix: Sequence[str] = (), delimiter: str = SUFFIX_DELIMITER) -> str:
    """Index note: ``__-core-suffix``."""
    return delimiter.join([INDEX_PREFIX, core_name, *suffix])


def format_backlink(basename: str, display_name: str) -> str:
    return f"[[{basename}|{display_name}]]"


def strip_navigation_backlink(content: str) -> str:
    """
    Убирает служебную строку-ссылку ``[[__...|← ...]]`` в начале документа
    (и пустые строки сразу после неё).
    """
    m = _BACKLINK_LINE_RE.match(content)
    if not m:
        return content
    return content[m.end():].lstrip("\n")


# =============================================================================
# Writing pages / Запись страниц
# =============================================================================
def _with_frontmatter(content: str, meta: Dict[str, str]) -> str:
    header = yaml.safe_dump(meta, allow_unicode=True, sort_keys=False).strip()
    body = _FRONTMATTER_RE.sub("", content, count=1)
    return f"---\n{header}\n---\n{body}"


def build_index_content(result: SegmentationResult, delimiter: str = SUFFIX_DELIMITER) -> str:
    """
    Оглавление: по строке-задаче на каждую страницу.

    - [ ] [[000-core|Page 1]]
    """
    lines: List[str] = []
    for page in result.pages:
        basename = build_page_basename(page.page_index, result.source_core_name, result.source_suffix, delimiter)
        lines.append(f"{NOT_STARTED_CHECKBOX} {format_backlink(basename, f'Page {page.page_index + 1}')}")
    return "\n" + "".join(f"{line}\n" for line in lines)


def build_page_file_content(result: SegmentationResult, page_content: str, delimiter: str = SUFFIX_DELIMITER) -> str:
    index_basename = build_index_basename(result.source_core_name, result.source_suffix, delimiter)
    backlink = format_backlink(index_basename, f"← {result.source_core_name}")
    return _with_frontmatter(f"{backlink}\n\n{page_content}\n", PAGE_FRONTMATTER)


def write_pages(
    result: SegmentationResult,
    out_dir: str | Path,
    delimiter: str = SUFFIX_DELIMITER,
    index_name: Optional[str] = None,
) -> List[Path]:
    """
    Write one Markdown file per page plus the index note.
    Пишет по файлу на страницу и файл-оглавление.

    Returns / Возвращает: written paths, index note last.
    """
    out_p = Path(out_dir)
    written: List[Path] = []
    for page in result.pages:
        name = build_page_basename(page.page_index, result.source_core_name, result.source_suffix, delimiter)
        path = out_p / f"{name}.md"
        save_markdown(build_page_file_content(result, page.content, delimiter), path)
        written.append(path)

    index_base = index_name or build_index_basename(result.source_core_name, result.source_suffix, delimiter)
    index_path = out_p / f"{index_base}.md"
    save_markdown(build_index_content(result, delimiter), index_path)
    written.append(index_path)
    return written
