"""Fields produced by the document extraction pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from fieldwise.domain.model.entity import Entity
from fieldwise.domain.model.enums import EntityType
from fieldwise.domain.model.values import MISSING

if TYPE_CHECKING:
    from uuid import UUID

    from fieldwise.domain.model.values import FieldValue


@dataclass(eq=False, kw_only=True)
class ExtractedField(Entity):
    """One value read from one document.

    Never mutated after creation; a re-extraction produces a new row with a
    higher ``revision``.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.EXTRACTED_FIELD

    document_id: UUID
    field_name: str
    value: FieldValue = MISSING
    confidence: float | None = None
    alternatives: tuple[FieldValue, ...] = ()
    revision: int = 1
    source: str | None = None

    def __post_init__(self) -> None:
        if self.confidence is not None and not 0 <= self.confidence <= 100:  # noqa: PLR2004
            raise ValueError("ExtractedField confidence must be within 0-100")
