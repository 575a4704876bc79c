from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError
from rich import print
from rich.table import Table

from book_segmenter.core.config import DEFAULT_CONFIG_PATH, SegmenterConfig, load_segmenter_config
from book_segmenter.core.io import read_markdown, save_jsonl, save_markdown, write_pages
from book_segmenter.core.language import get_language_config
from book_segmenter.core.pipelines import segment_content, split_str_in_blocks

_dotenv_path = find_dotenv(filename=".env", usecwd=True)
if _dotenv_path:
    load_dotenv(_dotenv_path, override=False)

logger = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, add_completion=False)


@app.callback()
def _setup(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Подробный лог (DEBUG)"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_config(config: Path, language: Optional[str]) -> SegmenterConfig:
    """Конфиг + опциональная смена языка; ошибки → красное сообщение и код 1."""
    try:
        cfg = load_segmenter_config(config)
        if language:
            block_marker = cfg.block_marker.model_copy(update={"language": get_language_config(language)})
            cfg = cfg.model_copy(update={"block_marker": block_marker})
    except (ValidationError, ValueError) as exc:
        typer.secho(f"Некорректная конфигурация: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return cfg


def _require_file(path: Path) -> None:
    if not path.is_file():
        typer.secho(f"Файл не найден: {path}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@app.command("split-pages")
def split_pages_cmd(
    file: Path = typer.Argument(..., help="Markdown-документ для разбиения"),
    out_dir: Path = typer.Option(..., "--out", help="Папка для страниц"),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Путь к segmenter.yaml"),
    language: Optional[str] = typer.Option(None, "--language", help="Язык: de | en"),
    jsonl: Optional[Path] = typer.Option(None, "--jsonl", help="Дополнительно сохранить страницы в JSONL"),
):
    _require_file(file)
    cfg = _load_config(config, language)

    content = read_markdown(file)
    result = segment_content(content, file.name, cfg.segmentation, cfg.language)
    if result.too_short_to_split or not result.can_split:
        print(f"[yellow]Документ слишком короткий для разбиения[/yellow]: {file} ({len(content)} симв.)")
        return

    written = write_pages(result, out_dir)
    if jsonl is not None:
        save_jsonl([p.to_dict() for p in result.pages], jsonl)

    table = Table(title=f"Страницы: {result.source_core_name}")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Символов", justify="right")
    table.add_column("Файл")
    for page, path in zip(result.pages, written):
        table.add_row(str(page.page_index + 1), str(page.char_count), path.name)
    print(table)
    print(f"[green]Оглавление сохранено[/green]: {written[-1]}")


@app.command("mark-blocks")
def mark_blocks_cmd(
    file: Path = typer.Argument(..., help="Markdown-текст для разметки блоками"),
    start: int = typer.Option(0, "--start", min=0, help="Номер первого блока"),
    out: Optional[Path] = typer.Option(None, "--out", help="Куда сохранить результат (по умолчанию stdout)"),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Путь к segmenter.yaml"),
    language: Optional[str] = typer.Option(None, "--language", help="Язык: de | en"),
):
    _require_file(file)
    cfg = _load_config(config, language)

    result = split_str_in_blocks(read_markdown(file), start_index=start, config=cfg.block_marker)
    if out is None:
        typer.echo(result.marked_text)
        return
    save_markdown(result.marked_text, out)
    last = start + result.block_count - 1
    print(f"[green]Блоков[/green]: {result.block_count} (^{start}..^{last}) → {out}")


@app.command("show-config")
def show_config_cmd(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Путь к segmenter.yaml"),
):
    cfg = _load_config(config, None)

    table = Table(title="Эффективная конфигурация")
    table.add_column("Параметр")
    table.add_column("Значение", justify="right")
    for key, value in cfg.segmentation.model_dump().items():
        table.add_row(f"segmentation.{key}", str(value))
    table.add_row("block_marker.short_sentence_words", str(cfg.block_marker.short_sentence_words))
    table.add_row("block_marker.max_merged_words", str(cfg.block_marker.max_merged_words))
    table.add_row("block_marker.language", cfg.language.locale)
    print(table)


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
