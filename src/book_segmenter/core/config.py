# ==============================================================================
# Configuration module for segmentation settings
# Модуль конфигурации для настроек сегментации
# ==============================================================================
# Settings are loaded from a YAML file; environment variables override them.
#
# Настройки загружаются из YAML-файла, переменные окружения их переопределяют.
# ==============================================================================

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .language import GERMAN, LanguageConfig, get_language_config

logger = logging.getLogger(__name__)


# ==============================================================================
# Page segmentation
# Разбиение на страницы
# ==============================================================================
class SegmentationConfig(BaseModel):
    """
    Size limits for page segmentation (in characters).
    Ограничения размера страниц (в символах).
    """

    # Page is cut once it reaches this size
    # Страница закрывается, когда достигла этого размера
    target_page_size_chars: int = Field(3000, gt=0)

    # Hard-ish ceiling; pages may exceed it only to keep a dialogue / verse whole
    # Мягкий потолок: превышается только ради целостности диалога или стиха
    max_page_size_chars: int = Field(6000, gt=0)

    # Shorter documents are returned as a single page
    # Документы короче этого возвращаются одной страницей
    min_content_size_chars: int = Field(1500, ge=0)

    preserve_dialogues: bool = True

    # Legacy flag: accepted and ignored
    # Устаревший флаг: принимается и игнорируется
    preserve_paragraphs: bool = True

    # Overflow allowed when deferring a break for a non-splittable group
    # Допустимое превышение max при переносе разрыва ради неделимой группы
    defer_factor: float = Field(1.5, ge=1.0)

    @model_validator(mode="after")
    def _check_sizes(self) -> "SegmentationConfig":
        if self.max_page_size_chars < self.target_page_size_chars:
            raise ValueError("max_page_size_chars must be >= target_page_size_chars")
        return self

    @property
    def overflow_limit_chars(self) -> float:
        return self.max_page_size_chars * self.defer_factor


# ==============================================================================
# Block markers
# Маркеры блоков
# ==============================================================================
class BlockMarkerConfig(BaseModel):
    """
    Word budget for ``^N`` block markers.
    Бюджет слов для маркеров блоков ``^N``.
    """

    # Sentences with at most this many words are "short" and get merged
    # Предложения не длиннее стольких слов считаются короткими и сливаются
    short_sentence_words: int = Field(4, ge=0)

    # A merged block never exceeds this (except quotes / speech intros)
    # Слитый блок не превышает этого (кроме цитат и вводов прямой речи)
    max_merged_words: int = Field(30, gt=0)

    language: LanguageConfig = GERMAN

    @field_validator("language", mode="before")
    @classmethod
    def _language_by_name(cls, value: Any) -> Any:
        # YAML / env give a plain code: "de", "en"
        if isinstance(value, str):
            return get_language_config(value)
        return value


class SegmenterConfig(BaseModel):
    """Both sections of ``configs/segmenter.yaml``."""

    segmentation: SegmentationConfig = Field(default_factory=SegmentationConfig)
    block_marker: BlockMarkerConfig = Field(default_factory=BlockMarkerConfig)

    @property
    def language(self) -> LanguageConfig:
        return self.block_marker.language


# ==============================================================================
# Environment variable overrides
# Переопределения через переменные окружения
# ==============================================================================
class EnvSegmenterOverrides(BaseSettings):
    """
    Example: SEGMENTER_TARGET_PAGE_SIZE_CHARS=4000, SEGMENTER_LANGUAGE=en.
    Пример: SEGMENTER_MAX_MERGED_WORDS=40.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEGMENTER_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    target_page_size_chars: Optional[int] = None
    max_page_size_chars: Optional[int] = None
    min_content_size_chars: Optional[int] = None
    defer_factor: Optional[float] = None
    short_sentence_words: Optional[int] = None
    max_merged_words: Optional[int] = None
    language: Optional[str] = None


_SEGMENTATION_KEYS = (
    "target_page_size_chars",
    "max_page_size_chars",
    "min_content_size_chars",
    "defer_factor",
)
_BLOCK_MARKER_KEYS = ("short_sentence_words", "max_merged_words", "language")


def _resolve_default_config_path() -> Path:
    """
    Find configs/segmenter.yaml by searching upward from this file.
    Ищем configs/segmenter.yaml, поднимаясь вверх от текущего файла.
    """
    start = Path(__file__).resolve()
    for p in [start] + list(start.parents):
        cand = p / "configs" / "segmenter.yaml"
        if cand.exists():
            return cand
    return Path("configs/segmenter.yaml")


DEFAULT_CONFIG_PATH = _resolve_default_config_path()


def _read_yaml(file_path: Path) -> Dict[str, Any]:
    if not file_path.exists():
        logger.info("segmenter.yaml не найден (%s), используются значения по умолчанию", file_path)
        return {}
    logger.info("segmenter.yaml: %s", file_path)
    with file_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data if isinstance(data, dict) else {}


def load_segmenter_config(path: Optional[str | Path] = None) -> SegmenterConfig:
    """
    Load configuration from YAML and apply environment overrides.
    Загрузить конфигурацию из YAML и применить переопределения из окружения.

    Priority / Приоритет (highest to lowest / от высшего к низшему):
        1. Environment variables (SEGMENTER_*)
        2. YAML file (``segmentation:`` / ``block_marker:`` sections, top-level ``language:``)
        3. Defaults of SegmentationConfig / BlockMarkerConfig

    Raises pydantic ``ValidationError`` on invalid values.
    """
    file_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = _read_yaml(file_path)

    seg_params: Dict[str, Any] = dict(data.get("segmentation") or {})
    block_params: Dict[str, Any] = dict(data.get("block_marker") or {})
    if "language" in data and "language" not in block_params:
        block_params["language"] = data["language"]

    overrides = EnvSegmenterOverrides().model_dump(exclude_none=True)
    if overrides:
        logger.info("Переопределения из окружения: %s", sorted(overrides))
    for key, value in overrides.items():
        if key in _SEGMENTATION_KEYS:
            seg_params[key] = value
        elif key in _BLOCK_MARKER_KEYS:
            block_params[key] = value

    # validate after merging so env values go through the same checks
    return SegmenterConfig(
        segmentation=SegmentationConfig(**seg_params),
        block_marker=BlockMarkerConfig(**block_params),
    )
