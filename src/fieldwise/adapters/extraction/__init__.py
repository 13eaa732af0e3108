"""Public interface for the extraction payload adapter."""

from __future__ import annotations

from .schema import DocumentPayload, ExtractionPayload, ExtractionPayloadInput, FieldPayload
from .translator import parse_extraction

__all__ = [
    "DocumentPayload",
    "ExtractionPayload",
    "ExtractionPayloadInput",
    "FieldPayload",
    "parse_extraction",
]
