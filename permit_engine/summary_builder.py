"""
Summary Builder

Partitions an EvaluationResult into confidence buckets and agency groups,
and produces the canonical all_permits list consumed by document
generators and the submission tracker.

Pure and idempotent: summarize(result) == summarize(result).
"""

from typing import Dict, List, Optional, Tuple

from .agency_registry import get_agency
from .permit_model import (
    AgencyGroup,
    Confidence,
    Diagnostic,
    EvaluationResult,
    PermitRequirement,
    PermitSummary,
    TRACK_BASE_PERMIT,
    WorkflowTrack,
    LAKE_TAPPS_HIGH_WATER_ELEVATION_FEET,
    LAKE_TAPPS_MAX_WATER_ELEVATION_FEET,
)


def _canonical_permits(result: EvaluationResult) -> Tuple[str, ...]:
    """Base permit first, then first-seen order, duplicates removed."""
    base = TRACK_BASE_PERMIT.get(result.workflow_track)
    ordered: List[str] = []
    if base is not None and result.get(base) is not None:
        ordered.append(base)
    for requirement in result.requirements:
        if requirement.permit not in ordered:
            ordered.append(requirement.permit)
    return tuple(ordered)


def _group_by_agency(requirements: List[PermitRequirement]) -> Tuple[AgencyGroup, ...]:
    order: List[str] = []
    permits: Dict[str, List[str]] = {}
    for requirement in requirements:
        if requirement.agency_id not in permits:
            order.append(requirement.agency_id)
            permits[requirement.agency_id] = []
        permits[requirement.agency_id].append(requirement.permit)

    groups = []
    for agency_id in order:
        agency = get_agency(agency_id)
        groups.append(AgencyGroup(
            agency_id=agency_id,
            agency_name=agency.name if agency else agency_id,
            permits=tuple(permits[agency_id]),
        ))
    return tuple(groups)


def _site_notes(result: EvaluationResult) -> Tuple[str, ...]:
    """Informational site text. Never affects which permits apply."""
    if result.workflow_track != WorkflowTrack.WATERFRONT.value or result.elevation_feet is None:
        return ()

    elevation = result.elevation_feet
    if elevation < LAKE_TAPPS_HIGH_WATER_ELEVATION_FEET:
        relation = "below"
    elif elevation == LAKE_TAPPS_HIGH_WATER_ELEVATION_FEET:
        relation = "at"
    else:
        relation = "above"
    notes = [
        f"Site elevation {elevation:g} ft is {relation} the "
        f"{LAKE_TAPPS_HIGH_WATER_ELEVATION_FEET} ft high-water elevation"
    ]
    if elevation <= LAKE_TAPPS_MAX_WATER_ELEVATION_FEET:
        notes.append(
            f"Site is at or below the {LAKE_TAPPS_MAX_WATER_ELEVATION_FEET} ft "
            f"maximum reservoir level"
        )
    return tuple(notes)


def summarize(result: EvaluationResult) -> PermitSummary:
    """
    Build a PermitSummary from an EvaluationResult.

    Buckets preserve the evaluator's relative order.
    """
    ordered = _canonical_permits(result)
    by_permit = {r.permit: r for r in result.requirements}
    requirements = [by_permit[p] for p in ordered]

    definitely = tuple(r for r in requirements if r.confidence == Confidence.DEFINITE.value)
    likely = tuple(r for r in requirements if r.confidence == Confidence.LIKELY.value)
    conditional = tuple(r for r in requirements if r.confidence == Confidence.CONDITIONAL.value)

    diagnostics: Tuple[Diagnostic, ...] = tuple(w.to_diagnostic() for w in result.warnings)

    return PermitSummary(
        workflow_track=result.workflow_track,
        definitely_required=definitely,
        likely_required=likely,
        conditional=conditional,
        all_permits=ordered,
        by_agency=_group_by_agency(requirements),
        notes=_site_notes(result),
        diagnostics=diagnostics,
        input_hash=result.input_hash,
        engine_version=result.engine_version,
    )


def explain(permit: str, summary: PermitSummary) -> Optional[str]:
    """Rationale for a permit in a summary, or None if it is not present."""
    for requirement in summary.definitely_required + summary.likely_required + summary.conditional:
        if requirement.permit == permit:
            return requirement.rationale
    return None
