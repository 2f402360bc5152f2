"""Extractor registry — map dialects to import extractors."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from depcheck.models import ImportReference, SourceFile


@runtime_checkable
class ImportExtractor(Protocol):
    """Interface that every dialect extractor must satisfy."""

    dialect: str
    extensions: list[str]

    def extract(self, source: SourceFile, content: str) -> list[ImportReference]: ...


EXTRACTOR_REGISTRY: dict[str, ImportExtractor] = {}


def register_extractor(extractor: ImportExtractor) -> None:
    """Register an extractor instance by its dialect."""
    EXTRACTOR_REGISTRY[extractor.dialect] = extractor


def get_extractor(dialect: str) -> ImportExtractor:
    try:
        return EXTRACTOR_REGISTRY[dialect]
    except KeyError:
        raise KeyError(f"No extractor registered for dialect '{dialect}'") from None


def default_dialect_map() -> dict[str, str]:
    """Extension -> dialect mapping declared by the registered extractors."""
    mapping: dict[str, str] = {}
    for extractor in EXTRACTOR_REGISTRY.values():
        for ext in extractor.extensions:
            mapping[ext] = extractor.dialect
    return mapping
