"""Thresholds and field classifications for the clarification engine."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env, optional_int_env, optional_list_env
from .errors import ValidationError

DEFAULT_MIN_CONFIDENCE_THRESHOLD = 70.0
DEFAULT_MAX_BENCHMARK_VARIANCE = 0.20
DEFAULT_MAX_DOCUMENT_VARIANCE = 0.10
DEFAULT_AUTO_RESOLVE_THRESHOLD = 95.0
DEFAULT_MAX_COMPARED_DOCUMENTS = 50

DEFAULT_CRITICAL_FIELDS: tuple[str, ...] = (
    "totalRevenue",
    "totalExpenses",
    "noi",
    "normalizedNoi",
    "occupancyRate",
    "licensedBeds",
    "certifiedBeds",
    "laborCost",
    "agencyLabor",
)

# Fields whose cross-document disagreement escalates to critical severity.
DEFAULT_SEVERITY_CRITICAL_FIELDS: tuple[str, ...] = (
    "totalRevenue",
    "noi",
    "totalExpenses",
    "occupancyRate",
)


@dataclass(frozen=True, slots=True, kw_only=True)
class ClarificationConfig:
    """Tunable thresholds used by the evaluator, detector and orchestrator."""

    min_confidence_threshold: float = DEFAULT_MIN_CONFIDENCE_THRESHOLD
    max_benchmark_variance: float = DEFAULT_MAX_BENCHMARK_VARIANCE
    max_document_variance: float = DEFAULT_MAX_DOCUMENT_VARIANCE
    auto_resolve_threshold: float = DEFAULT_AUTO_RESOLVE_THRESHOLD
    critical_fields: frozenset[str] = frozenset(DEFAULT_CRITICAL_FIELDS)
    severity_critical_fields: frozenset[str] = frozenset(DEFAULT_SEVERITY_CRITICAL_FIELDS)
    max_compared_documents: int | None = DEFAULT_MAX_COMPARED_DOCUMENTS

    def __post_init__(self) -> None:
        for name in ("min_confidence_threshold", "auto_resolve_threshold"):
            value = getattr(self, name)
            if not 0 <= value <= 100:  # noqa: PLR2004
                raise ValidationError(f"{name} must be within 0-100, got {value}")
        for name in ("max_benchmark_variance", "max_document_variance"):
            value = getattr(self, name)
            if value < 0:
                raise ValidationError(f"{name} must be non-negative, got {value}")
        if self.max_compared_documents is not None and self.max_compared_documents < 1:
            raise ValidationError(
                f"max_compared_documents must be positive, got {self.max_compared_documents}"
            )

    def is_critical(self, field_name: str) -> bool:
        return field_name in self.critical_fields


def get_clarification_config() -> ClarificationConfig:
    """Build the clarification config, applying environment overrides."""

    overrides: dict[str, object] = {}
    float_options = {
        "min_confidence_threshold": "FIELDWISE_MIN_CONFIDENCE",
        "max_benchmark_variance": "FIELDWISE_MAX_BENCHMARK_VARIANCE",
        "max_document_variance": "FIELDWISE_MAX_DOCUMENT_VARIANCE",
        "auto_resolve_threshold": "FIELDWISE_AUTO_RESOLVE_THRESHOLD",
    }
    for option, env_name in float_options.items():
        value = optional_float_env(env_name)
        if value is not None:
            overrides[option] = value

    critical = optional_list_env("FIELDWISE_CRITICAL_FIELDS")
    if critical is not None:
        overrides["critical_fields"] = frozenset(critical)

    window = optional_int_env("FIELDWISE_MAX_COMPARED_DOCUMENTS")
    if window is not None:
        overrides["max_compared_documents"] = window

    return ClarificationConfig(**overrides)  # pyright: ignore[reportArgumentType]
