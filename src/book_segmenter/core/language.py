"""
Language configurations: quote classes, verse detection and abbreviations.

RU: Языковые настройки: классы кавычек, признаки стихов и сокращения.
Поставляются две конфигурации: немецкая (по умолчанию) и английская.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, Optional, Pattern, Tuple

from pydantic import BaseModel, ConfigDict


class LanguageConfig(BaseModel):
    """
    Locale-specific parameters of the segmenter.

    Quote characters are split into three classes: opening marks push onto
    the quote stack, closing marks pop it, neutral marks toggle (some scripts
    use the same glyph for both roles).
    """

    model_config = ConfigDict(frozen=True)

    locale: str
    opening_quotes: str
    closing_quotes: str
    neutral_quotes: str = '"'
    # regexes (re.MULTILINE) marking a hard line break inside verse
    poem_line_patterns: Tuple[str, ...] = (r" {2}$", r"\\$")
    # lines shorter than this (trimmed) count as verse-shaped
    poem_max_line_length: int = 50
    # пробел внутри сокращения = необязательный пробел ("z. B." ~ "z.B.")
    abbreviations: Tuple[str, ...] = ()

    @property
    def segmenter_language(self) -> str:
        """ISO 639-1 code understood by pysbd ("de-DE" → "de")."""
        return self.locale.split("-")[0].lower()

    @property
    def all_quotes(self) -> str:
        return self.opening_quotes + self.closing_quotes + self.neutral_quotes


GERMAN = LanguageConfig(
    locale="de-DE",
    opening_quotes="„‚»",
    closing_quotes="“‘«”",
    abbreviations=(
        "z. B.", "d. h.", "u. a.", "s. o.", "s. u.", "z. T.", "u. U.",
        "usw.", "bzw.", "ca.", "vgl.", "ggf.", "evtl.", "inkl.", "bspw.",
        "etc.", "Nr.", "Dr.", "Prof.", "Mio.", "Mrd.", "Str.", "St.",
    ),
)

ENGLISH = LanguageConfig(
    locale="en-US",
    opening_quotes="“«",
    closing_quotes="”»",
    abbreviations=(
        "e. g.", "i. e.", "Mr.", "Mrs.", "Ms.", "Dr.", "Prof.", "vs.", "St.",
    ),
)

BUILTIN_LANGUAGES: Dict[str, LanguageConfig] = {
    "de": GERMAN,
    "en": ENGLISH,
}


def get_language_config(name: str) -> LanguageConfig:
    """Look up a built-in config by language code or locale tag."""
    key = (name or "").split("-")[0].strip().lower()
    try:
        return BUILTIN_LANGUAGES[key]
    except KeyError:
        known = ", ".join(sorted(BUILTIN_LANGUAGES))
        raise ValueError(f"Unknown language {name!r}; expected one of: {known}") from None


@lru_cache(maxsize=None)
def poem_line_regexes(language: LanguageConfig) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.MULTILINE) for p in language.poem_line_patterns)


@lru_cache(maxsize=None)
def abbreviation_regex(language: LanguageConfig) -> Optional[Pattern[str]]:
    """
    One alternation over all abbreviations, longest first; spaces inside an
    abbreviation match optional whitespace ("z. B." also matches "z.B.").
    """
    if not language.abbreviations:
        return None
    alternatives = []
    for abbr in sorted(language.abbreviations, key=len, reverse=True):
        parts = [re.escape(part) for part in abbr.split(" ") if part]
        alternatives.append(r"\s?".join(parts))
    return re.compile(r"(?<!\w)(?:" + "|".join(alternatives) + ")")
