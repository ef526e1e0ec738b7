"""
Normalization Layer

RESPONSIBILITY: Canonicalize raw entity text into a stable name per entity type
ALLOWED INPUTS: Raw cell values from parsed row records
OUTPUTS: Normalized names (the empty string means "excluded")

WHAT THIS LAYER MUST NOT DO:
============================
- Build nodes or links
- Raise on dirty input (every input maps to some string)
- Hard-code brand data in logic (aliases live in NormalizationConfig)

RULES:
======
1. Generic cleanup for every type: trim, newlines -> spaces, collapse whitespace
2. Company types (supplier, importer): uppercase, strip legal suffixes as whole
   words, punctuation -> spaces, collapse, trim
3. Brand canonicalization: first alias substring found wins
4. Country and product text: generic cleanup only, no case folding
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
import json
import math
import os
import re

from ..contracts.base import EntityType


DEFAULT_LEGAL_SUFFIXES: Tuple[str, ...] = (
    "CO LTD", "LTD", "LLC", "INC", "GMBH",
    "CORPORATION", "CORP", "PVT", "PRIVATE", "LIMITED",
)

DEFAULT_BRAND_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("SUZLON", "SUZLON"),
    ("INOX WIND", "INOX WIND"),
    ("ENVISION", "ENVISION"),
)

BRAND_ALIASES_ENV = "TRADEGRAPH_BRAND_ALIASES"

COMPANY_TYPES = frozenset({EntityType.SUPPLIER, EntityType.IMPORTER})

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")
_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[.,&\-/\\()]")


@dataclass(frozen=True)
class NormalizationConfig:
    """
    Domain data for company-name canonicalization.

    brand_aliases is an ordered tuple of (alias substring, canonical name).
    """
    legal_suffixes: Tuple[str, ...] = DEFAULT_LEGAL_SUFFIXES
    brand_aliases: Tuple[Tuple[str, str], ...] = DEFAULT_BRAND_ALIASES

    @staticmethod
    def from_dict(data: dict) -> NormalizationConfig:
        suffixes = data.get('legal_suffixes', DEFAULT_LEGAL_SUFFIXES)
        aliases = data.get('brand_aliases', DEFAULT_BRAND_ALIASES)
        if isinstance(aliases, dict):
            aliases = aliases.items()
        return NormalizationConfig(
            legal_suffixes=tuple(str(s).upper() for s in suffixes),
            brand_aliases=tuple((str(a).upper(), str(c)) for a, c in aliases),
        )

    @staticmethod
    def from_json_file(path) -> NormalizationConfig:
        with open(Path(path), "r", encoding="utf-8") as f:
            return NormalizationConfig.from_dict(json.load(f))

    @staticmethod
    def from_env() -> NormalizationConfig:
        """Load from the file named by TRADEGRAPH_BRAND_ALIASES, else defaults."""
        path = os.environ.get(BRAND_ALIASES_ENV)
        if path:
            return NormalizationConfig.from_json_file(path)
        return NormalizationConfig()


def coerce_text(value) -> str:
    """
    Render a typed cell value (str, int, float) as text.

    Used for HS codes, which typed parsers hand over as numbers.
    Integral floats drop their ".0"; booleans, NaN and other objects
    yield the empty string.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    return ""


def clean_text(value: str) -> str:
    """Generic cleanup: trim, newlines to spaces, collapse whitespace."""
    text = _NEWLINE_RE.sub(" ", value.strip())
    return _WHITESPACE_RE.sub(" ", text).strip()


class Normalizer:
    """
    Per-type entity name normalizer.

    Stateless apart from its compiled configuration; safe to share.
    """

    def __init__(self, config: Optional[NormalizationConfig] = None):
        self._config = config or NormalizationConfig()
        suffixes = "|".join(re.escape(s) for s in self._config.legal_suffixes)
        self._suffix_re = re.compile(rf"\b(?:{suffixes})\b") if suffixes else None

    @property
    def config(self) -> NormalizationConfig:
        return self._config

    def normalize(self, raw_value, entity_type: EntityType) -> str:
        if not isinstance(raw_value, str) or not raw_value:
            return ""

        normalized = clean_text(raw_value)
        if entity_type in COMPANY_TYPES:
            normalized = self._normalize_company(normalized)
        return normalized

    def _normalize_company(self, name: str) -> str:
        name = name.upper()
        if self._suffix_re is not None:
            name = self._suffix_re.sub("", name)
        name = _PUNCTUATION_RE.sub(" ", name)
        name = _WHITESPACE_RE.sub(" ", name).strip()

        for alias, canonical in self._config.brand_aliases:
            if alias and alias in name:
                return canonical
        return name


_default_normalizer = Normalizer()


def normalize_entity(raw_value, entity_type: EntityType) -> str:
    """Normalize with the default configuration."""
    return _default_normalizer.normalize(raw_value, entity_type)


__all__ = [
    'NormalizationConfig', 'Normalizer', 'normalize_entity',
    'coerce_text', 'clean_text',
    'DEFAULT_LEGAL_SUFFIXES', 'DEFAULT_BRAND_ALIASES', 'BRAND_ALIASES_ENV',
]
