"""Domain error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from fieldwise.domain.model.enums import EntityType


class NotFoundError(LookupError):
    """Raised when a referenced case, document, issue or conflict does not exist."""

    def __init__(self, entity_type: EntityType, entity_id: UUID) -> None:
        super().__init__(f"{entity_type} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class InvalidTransitionError(ValueError):
    """Raised when resolving a record that already left the pending state."""


class NormalizationSkip(ValueError):  # noqa: N818
    """A raw value cannot be turned into a comparable ``FieldValue``.

    Always recovered locally: the field is excluded from the check that needed it.
    """
