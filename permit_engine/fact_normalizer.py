"""
Fact Normalizer

Converts raw project-details records from the form UI (camelCase keys,
partially filled, strings for numbers) into a validated FactModel.

Pure transformation. No side effects.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Dict, Any, List, Mapping, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .permit_model import (
    ConfigurationError,
    FactModel,
    ProjectCategory,
    WorkflowTrack,
)

logger = logging.getLogger("fact_normalizer")


# -----------------------------------------------------------------------------
# Raw Input Model
# -----------------------------------------------------------------------------
class ProjectDetailsInput(BaseModel):
    """
    Raw project-details record as the form UI sends it.

    Every field is optional here; defaults are applied during normalization.
    """
    model_config = ConfigDict(extra="ignore")

    workflow_track: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("workflowTrack", "workflowType", "workflow_track"),
    )
    category: Optional[str] = None
    improvement_types: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("improvementTypes", "improvement_types"),
    )
    estimated_cost_cents: Optional[int] = Field(
        default=None,
        strict=True,
        validation_alias=AliasChoices("estimatedCostCents", "estimated_cost_cents"),
    )
    estimated_cost: Optional[Any] = Field(
        default=None,
        validation_alias=AliasChoices("estimatedCost", "estimated_cost"),
    )
    in_water: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("inWater", "in_water")
    )
    below_high_water_line: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("belowHighWaterLine", "below_high_water_line"),
    )
    within_shoreline_jurisdiction: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("withinShorelineJurisdiction", "within_shoreline_jurisdiction"),
    )
    near_shoreline: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("nearShoreline", "near_shoreline")
    )
    on_sewer: Optional[bool] = Field(
        default=None, validation_alias=AliasChoices("onSewer", "on_sewer")
    )
    has_existing_adu: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("hasExistingADU", "hasExistingAdu", "has_existing_adu"),
    )
    elevation_feet: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("elevationFeet", "elevation", "elevation_feet"),
    )
    description: Optional[str] = None


RawInput = Union[Mapping[str, Any], ProjectDetailsInput, FactModel]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _dollars_to_cents(value: Any) -> int:
    """Convert a dollar amount (number or "$7,047.00"-style string) to cents."""
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ConfigurationError(
            "Estimated cost must be a number", field="estimatedCost", value=value
        )
    text = str(value).replace(",", "").replace("$", "").strip()
    if not text:
        return 0
    try:
        dollars = Decimal(text)
    except InvalidOperation:
        raise ConfigurationError(
            f"Estimated cost is not a number: {value!r}",
            field="estimatedCost",
            value=value,
        )
    if not dollars.is_finite():
        raise ConfigurationError(
            f"Estimated cost is not a number: {value!r}",
            field="estimatedCost",
            value=value,
        )
    return int((dollars * 100).to_integral_value(rounding=ROUND_HALF_UP))


def _normalize_tag(tag: str) -> str:
    return tag.strip().lower().replace("-", "_").replace(" ", "_")


def _normalize_track(value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        raise ConfigurationError(
            "Workflow track is required", field="workflowTrack", value=value
        )
    track = str(value).strip().lower()
    if track not in [t.value for t in WorkflowTrack]:
        raise ConfigurationError(
            f"Unrecognized workflow track: {value!r}",
            field="workflowTrack",
            value=value,
        )
    return track


def _parse_raw(raw: Union[Mapping[str, Any], ProjectDetailsInput]) -> ProjectDetailsInput:
    if isinstance(raw, ProjectDetailsInput):
        return raw
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Project details must be a mapping, got {type(raw).__name__}"
        )
    try:
        return ProjectDetailsInput.model_validate(dict(raw))
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid project details: {location}: {first.get('msg')}",
            field=location or None,
            value=first.get("input"),
        ) from e


# -----------------------------------------------------------------------------
# Normalization
# -----------------------------------------------------------------------------
def normalize_facts(raw: RawInput) -> FactModel:
    """
    Build a validated FactModel from a raw project-details record.

    Defaults: cost 0, booleans False, improvement types empty,
    category new_construction.

    Raises:
        ConfigurationError: missing/unrecognized track, invalid category,
            negative or unparseable cost
    """
    if isinstance(raw, FactModel):
        return raw

    details = _parse_raw(raw)
    track = _normalize_track(details.workflow_track)

    category = (details.category or ProjectCategory.NEW_CONSTRUCTION.value).strip().lower()
    if category not in [c.value for c in ProjectCategory]:
        raise ConfigurationError(
            f"Unrecognized project category: {details.category!r}",
            field="category",
            value=details.category,
        )

    if details.estimated_cost_cents is not None:
        cost_cents = details.estimated_cost_cents
    else:
        cost_cents = _dollars_to_cents(details.estimated_cost)

    tags = frozenset(
        _normalize_tag(tag)
        for tag in (details.improvement_types or [])
        if tag and tag.strip()
    )

    facts = FactModel(
        workflow_track=track,
        category=category,
        improvement_types=tags,
        estimated_cost_cents=cost_cents,
        in_water=bool(details.in_water),
        below_high_water_line=bool(details.below_high_water_line),
        within_shoreline_jurisdiction=bool(details.within_shoreline_jurisdiction),
        near_shoreline=bool(details.near_shoreline),
        on_sewer=bool(details.on_sewer),
        has_existing_adu=bool(details.has_existing_adu),
        elevation_feet=details.elevation_feet,
        description=details.description or "",
    )
    logger.debug(f"Normalized facts for track={track} hash={facts.compute_hash()[:12]}")
    return facts


def create_facts(**kwargs: Any) -> FactModel:
    """
    Create a FactModel from snake_case keyword arguments.

    Convenience function for tests and internal callers.
    """
    return normalize_facts(kwargs)
