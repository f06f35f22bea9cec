"""
Tracker Policy - tunable scoring weights and blacklist thresholds

Everything the scoring and policy engines treat as a constant lives here so
operators can adjust it from a JSON file without code changes.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from supplier_reliability.kernel.errors import from_pydantic

SEVERITY_LEVELS = ("low", "medium", "high", "critical")


class ScoringWeights(BaseModel):
    """Weights of the four sub-scores in the composite (must sum to 1.0)"""

    quality: float = Field(default=0.35, ge=0.0, le=1.0)
    on_time: float = Field(default=0.25, ge=0.0, le=1.0)
    success_rate: float = Field(default=0.25, ge=0.0, le=1.0)
    satisfaction: float = Field(default=0.15, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_sum(self) -> "ScoringWeights":
        total = self.quality + self.on_time + self.success_rate + self.satisfaction
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total:.4f}")
        return self


class TrackerPolicy(BaseModel):
    """
    Scoring and blacklist policy

    Defaults follow the storefront's production settings: a supplier drops
    out of rotation below 30 points, is flagged for watching below 50 and is
    considered elite from 80 up.
    """

    policy_version: str = Field(default="1.0", description="Policy version for audit")

    # Scoring
    scoring_weights: ScoringWeights = Field(default_factory=ScoringWeights)

    severity_penalties: dict[str, float] = Field(
        default={"low": 2.0, "medium": 5.0, "high": 10.0, "critical": 20.0},
        description="Quality points lost per incident at the reference impact",
    )

    impact_reference: float = Field(
        default=5.0,
        gt=0.0,
        le=10.0,
        description="Impact at which an incident costs exactly its severity penalty",
    )

    incident_window_days: int = Field(
        default=90,
        ge=1,
        description="Incidents older than this no longer affect the quality score",
    )

    on_time_threshold_days: float = Field(
        default=7.0,
        gt=0.0,
        description="Shipments at or under this many days count as on time",
    )

    shipping_window_size: int = Field(
        default=100,
        ge=1,
        description="Number of most recent shipping-duration samples retained",
    )

    communication_weight: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Weight of communication issues relative to quality issues in satisfaction",
    )

    # Tiers
    elite_score_threshold: int = Field(default=80, ge=0, le=100)
    watch_score_threshold: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Scores below this are WATCH status and 'poor' tier",
    )

    # Blacklist policy
    critical_score_threshold: int = Field(
        default=30,
        ge=0,
        le=100,
        description="Composite score below which a supplier is auto-blacklisted",
    )

    auto_blacklist_impact_threshold: int = Field(
        default=8,
        ge=1,
        le=10,
        description="Incident impact at or above which a supplier is auto-blacklisted",
    )

    default_suspension_days: int = Field(
        default=30,
        ge=1,
        description="Lifetime of an automatic suspension",
    )

    permanent_after_auto_blacklists: int = Field(
        default=3,
        ge=1,
        description="The Nth automatic blacklisting of a supplier is permanent",
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "description": "Supplier scoring weights and blacklist thresholds"
        },
    }

    @field_validator("severity_penalties")
    @classmethod
    def validate_severity_penalties(cls, v: dict[str, float]) -> dict[str, float]:
        missing = [level for level in SEVERITY_LEVELS if level not in v]
        if missing:
            raise ValueError(f"Missing severity penalties for: {', '.join(missing)}")
        unknown = [level for level in v if level not in SEVERITY_LEVELS]
        if unknown:
            raise ValueError(f"Unknown severity levels: {', '.join(unknown)}")
        if any(p < 0 for p in v.values()):
            raise ValueError("Severity penalties cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_threshold_order(self) -> "TrackerPolicy":
        if not (
            self.critical_score_threshold
            <= self.watch_score_threshold
            <= self.elite_score_threshold
        ):
            raise ValueError(
                "Thresholds must satisfy critical <= watch <= elite "
                f"({self.critical_score_threshold}, {self.watch_score_threshold}, "
                f"{self.elite_score_threshold})"
            )
        return self

    def with_changes(self, **changes: Any) -> "TrackerPolicy":
        """
        Return a validated copy with the given fields replaced

        Raises:
            ValidationError: If the resulting policy is invalid
        """
        data = self.model_dump()
        data.update(changes)
        try:
            return TrackerPolicy.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic(e, "TrackerPolicy") from e


def load_policy(path: str | Path) -> TrackerPolicy:
    """
    Load a policy from a JSON file; missing fields take their defaults

    Raises:
        ValidationError: If the file contents do not form a valid policy
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    try:
        return TrackerPolicy.model_validate(raw)
    except PydanticValidationError as e:
        raise from_pydantic(e, "TrackerPolicy") from e

