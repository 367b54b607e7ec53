"""
Permit Model: Facts, Requirements, Summaries & Diagnostics

This module defines the data structures for permit determination.
All structures are IMMUTABLE.

CRITICAL CONSTRAINTS:
- PURE DATA: No I/O, no evaluation logic
- DETERMINISTIC: Hashes and serialization are order-stable
- ONE PERMIT ENUMERATION: PermitKind is the single source of permit ids
- MONEY IN CENTS: Costs are integers, never floats
"""

import hashlib
import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, List, FrozenSet, Tuple


ENGINE_VERSION = "1.2.0"


# -----------------------------------------------------------------------------
# Domain Constants
# -----------------------------------------------------------------------------
# Shoreline exemption cutoff (WAC 173-27-040, adjusted annually). Costs AT the
# cutoff still qualify for the exemption.
SHORELINE_EXEMPTION_THRESHOLD_CENTS = 704700  # $7,047.00

# In-water work above this value likely needs Army Corps authorization
FEDERAL_PERMIT_THRESHOLD_CENTS = 5000000  # $50,000.00

# Project value above which a building permit may be needed
BUILDING_PERMIT_VALUE_THRESHOLD_CENTS = 2500000  # $25,000.00

# Lake Tapps reservoir elevations (feet)
LAKE_TAPPS_HIGH_WATER_ELEVATION_FEET = 544
LAKE_TAPPS_MAX_WATER_ELEVATION_FEET = 543

RATIONALE_SEPARATOR = "; "


# -----------------------------------------------------------------------------
# Workflow Track Enum (LOCKED)
# -----------------------------------------------------------------------------
class WorkflowTrack(str, Enum):
    """
    Top-level project category. Selects which rules apply.
    """
    WATERFRONT = "waterfront"
    SOLAR = "solar"
    ADU = "adu"


class ProjectCategory(str, Enum):
    """Kind of work being permitted."""
    NEW_CONSTRUCTION = "new_construction"
    MODIFICATION = "modification"
    REPAIR_MAINTENANCE = "repair_maintenance"
    REPLACE_STRUCTURE = "replace_structure"


# -----------------------------------------------------------------------------
# Improvement Type Enum (LOCKED)
# -----------------------------------------------------------------------------
class ImprovementType(str, Enum):
    """
    Improvement tags selectable in the project-type stage.

    Each tag belongs to exactly one track (see TRACK_IMPROVEMENT_TYPES).
    """
    # Waterfront
    DOCK = "dock"
    PIER = "pier"
    FLOAT = "float"
    BOAT_LIFT = "boat_lift"
    BOAT_RAMP = "boat_ramp"
    BOATHOUSE = "boathouse"
    BULKHEAD = "bulkhead"
    MOORING_PILE = "mooring_pile"
    SWIM_FLOAT = "swim_float"
    OTHER = "other"

    # Solar
    ROOFTOP_SOLAR = "rooftop_solar"
    GROUND_MOUNT_SOLAR = "ground_mount_solar"
    BATTERY_STORAGE = "battery_storage"

    # ADU
    ATTACHED_ADU = "attached_adu"
    DETACHED_ADU = "detached_adu"
    GARAGE_CONVERSION = "garage_conversion"
    INTERIOR_ADU = "interior_adu"


TRACK_IMPROVEMENT_TYPES: Dict[str, FrozenSet[str]] = {
    WorkflowTrack.WATERFRONT.value: frozenset({
        ImprovementType.DOCK.value,
        ImprovementType.PIER.value,
        ImprovementType.FLOAT.value,
        ImprovementType.BOAT_LIFT.value,
        ImprovementType.BOAT_RAMP.value,
        ImprovementType.BOATHOUSE.value,
        ImprovementType.BULKHEAD.value,
        ImprovementType.MOORING_PILE.value,
        ImprovementType.SWIM_FLOAT.value,
        ImprovementType.OTHER.value,
    }),
    WorkflowTrack.SOLAR.value: frozenset({
        ImprovementType.ROOFTOP_SOLAR.value,
        ImprovementType.GROUND_MOUNT_SOLAR.value,
        ImprovementType.BATTERY_STORAGE.value,
    }),
    WorkflowTrack.ADU.value: frozenset({
        ImprovementType.ATTACHED_ADU.value,
        ImprovementType.DETACHED_ADU.value,
        ImprovementType.GARAGE_CONVERSION.value,
        ImprovementType.INTERIOR_ADU.value,
    }),
}


# -----------------------------------------------------------------------------
# Permit Kind Enum (LOCKED - single canonical enumeration)
# -----------------------------------------------------------------------------
class PermitKind(str, Enum):
    """
    Every permit the engine can determine.

    section_10 (structures in navigable waters) and section_404 (dredge/fill)
    are distinct kinds with distinct legal triggers.
    """
    CWA_LICENSE = "cwa_license"
    SHORELINE_EXEMPTION = "shoreline_exemption"
    SHORELINE_SUBSTANTIAL = "shoreline_substantial"
    SHORELINE_CONDITIONAL = "shoreline_conditional"
    SHORELINE_VARIANCE = "shoreline_variance"
    BUILDING_PERMIT = "building_permit"
    PIERCE_BUILDING_PERMIT = "pierce_building_permit"
    HPA = "hpa"
    SECTION_10 = "section_10"
    SECTION_404 = "section_404"
    WATER_QUALITY_401 = "water_quality_401"
    LNI_ELECTRICAL_PERMIT = "lni_electrical_permit"
    SOLAR_BUILDING_PERMIT = "solar_building_permit"
    UTILITY_INTERCONNECTION = "utility_interconnection"
    ADU_BUILDING_PERMIT = "adu_building_permit"
    PLANNING_APPROVAL = "planning_approval"
    SEPTIC_PERMIT = "septic_permit"
    ADU_SHORELINE_PERMIT = "adu_shoreline_permit"


# Base permit per track: always present, always first in all_permits
TRACK_BASE_PERMIT: Dict[str, str] = {
    WorkflowTrack.WATERFRONT.value: PermitKind.CWA_LICENSE.value,
    WorkflowTrack.SOLAR.value: PermitKind.SOLAR_BUILDING_PERMIT.value,
    WorkflowTrack.ADU.value: PermitKind.ADU_BUILDING_PERMIT.value,
}


# -----------------------------------------------------------------------------
# Confidence Enum (LOCKED - EXACTLY 3 VALUES)
# -----------------------------------------------------------------------------
class Confidence(str, Enum):
    """
    How certain the engine is that a permit applies.

    Used for grouping, never for filtering.
    """
    DEFINITE = "definite"
    LIKELY = "likely"
    CONDITIONAL = "conditional"


CONFIDENCE_RANK: Dict[str, int] = {
    Confidence.DEFINITE.value: 3,
    Confidence.LIKELY.value: 2,
    Confidence.CONDITIONAL.value: 1,
}


def higher_confidence(first: str, second: str) -> str:
    """Return the stronger of two confidence values (first wins ties)."""
    if CONFIDENCE_RANK[second] > CONFIDENCE_RANK[first]:
        return second
    return first


class DiagnosticLevel(str, Enum):
    """Severity of a diagnostic returned alongside a summary."""
    ERROR = "error"  # Blocking - summary is empty
    WARNING = "warning"  # Non-blocking note


class DiagnosticCode(str, Enum):
    CONFIGURATION_ERROR = "configuration_error"
    INCONSISTENT_FACTS = "inconsistent_facts"


# -----------------------------------------------------------------------------
# Errors & Diagnostics
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Diagnostic:
    """A diagnostic surfaced to the caller with the summary."""
    level: str  # DiagnosticLevel value
    code: str  # DiagnosticCode value
    message: str
    field: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "value": self.value,
        }


class ConfigurationError(Exception):
    """
    Fatal to an evaluation call.

    Raised for a missing/unrecognized workflow track, invalid fact values,
    a rule referencing an unregistered permit or agency, or an invalid
    configuration file. Callers must not use a partial summary.
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            level=DiagnosticLevel.ERROR.value,
            code=DiagnosticCode.CONFIGURATION_ERROR.value,
            message=self.message,
            field=self.field,
            value=None if self.value is None else str(self.value),
        )


@dataclass(frozen=True)
class InconsistentFactsWarning:
    """
    Non-fatal: an improvement tag does not belong to the declared track.

    The tag is excluded from rule matching; evaluation continues.
    """
    improvement_type: str
    workflow_track: str
    message: str

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            level=DiagnosticLevel.WARNING.value,
            code=DiagnosticCode.INCONSISTENT_FACTS.value,
            message=self.message,
            field="improvementTypes",
            value=self.improvement_type,
        )


# -----------------------------------------------------------------------------
# Fact Model (Frozen - Immutable)
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class FactModel:
    """
    Normalized inputs that drive permitting decisions.

    Constructed fresh for every evaluation. Immutable.
    """
    workflow_track: str  # WorkflowTrack value
    category: str = ProjectCategory.NEW_CONSTRUCTION.value
    improvement_types: FrozenSet[str] = frozenset()
    estimated_cost_cents: int = 0
    in_water: bool = False
    below_high_water_line: bool = False
    within_shoreline_jurisdiction: bool = False
    near_shoreline: bool = False
    on_sewer: bool = False
    has_existing_adu: bool = False
    elevation_feet: Optional[float] = None
    description: str = ""

    def __post_init__(self):
        """Validate facts on creation."""
        if self.workflow_track not in [t.value for t in WorkflowTrack]:
            raise ConfigurationError(
                f"Unrecognized workflow track: {self.workflow_track!r}",
                field="workflowTrack",
                value=self.workflow_track,
            )
        if self.category not in [c.value for c in ProjectCategory]:
            raise ConfigurationError(
                f"Unrecognized project category: {self.category!r}",
                field="category",
                value=self.category,
            )
        if isinstance(self.estimated_cost_cents, bool) or not isinstance(self.estimated_cost_cents, int):
            raise ConfigurationError(
                "Estimated cost must be an integer number of cents",
                field="estimatedCostCents",
                value=self.estimated_cost_cents,
            )
        if self.estimated_cost_cents < 0:
            raise ConfigurationError(
                f"Estimated cost cannot be negative: {self.estimated_cost_cents}",
                field="estimatedCostCents",
                value=self.estimated_cost_cents,
            )
        if not isinstance(self.improvement_types, frozenset):
            raise ConfigurationError(
                "improvement_types must be a frozenset for immutability",
                field="improvementTypes",
            )

    @property
    def base_permit(self) -> str:
        return TRACK_BASE_PERMIT[self.workflow_track]

    def has_improvement(self, improvement_type: str) -> bool:
        return improvement_type in self.improvement_types

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_track": self.workflow_track,
            "category": self.category,
            "improvement_types": sorted(self.improvement_types),
            "estimated_cost_cents": self.estimated_cost_cents,
            "in_water": self.in_water,
            "below_high_water_line": self.below_high_water_line,
            "within_shoreline_jurisdiction": self.within_shoreline_jurisdiction,
            "near_shoreline": self.near_shoreline,
            "on_sewer": self.on_sewer,
            "has_existing_adu": self.has_existing_adu,
            "elevation_feet": self.elevation_feet,
            "description": self.description,
        }

    def compute_hash(self) -> str:
        """Compute deterministic hash of all facts."""
        json_str = json.dumps(self.to_dict(), sort_keys=True, default=str)
        return hashlib.sha256(json_str.encode()).hexdigest()


# -----------------------------------------------------------------------------
# Permit Requirement (Frozen - Immutable)
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class PermitRequirement:
    """One required/likely/conditional permit after deduplication."""
    permit: str  # PermitKind value
    name: str
    confidence: str  # Confidence value
    rationale: str
    agency_id: str
    rule_ids: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "permit": self.permit,
            "name": self.name,
            "confidence": self.confidence,
            "rationale": self.rationale,
            "agency_id": self.agency_id,
            "rule_ids": list(self.rule_ids),
        }


@dataclass(frozen=True)
class EvaluationResult:
    """
    Evaluator output: requirements in rule-declaration order,
    deduplicated by permit.
    """
    workflow_track: str
    requirements: Tuple[PermitRequirement, ...]
    warnings: Tuple[InconsistentFactsWarning, ...]
    input_hash: str
    engine_version: str
    elevation_feet: Optional[float] = None

    def get(self, permit: str) -> Optional[PermitRequirement]:
        for requirement in self.requirements:
            if requirement.permit == permit:
                return requirement
        return None

    @property
    def permits(self) -> Tuple[str, ...]:
        return tuple(r.permit for r in self.requirements)


# -----------------------------------------------------------------------------
# Permit Summary (Frozen - Immutable)
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class AgencyGroup:
    """Permits owned by one agency, in first-seen order."""
    agency_id: str
    agency_name: str
    permits: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agency_id": self.agency_id,
            "agency_name": self.agency_name,
            "permits": list(self.permits),
        }


@dataclass(frozen=True)
class PermitSummary:
    """
    Presentation-ready partition of an evaluation.

    all_permits is canonical: base permit first, then first-seen rule order.
    Structural equality covers ordering, so callers can diff summaries
    before persisting them.
    """
    workflow_track: Optional[str]
    definitely_required: Tuple[PermitRequirement, ...] = ()
    likely_required: Tuple[PermitRequirement, ...] = ()
    conditional: Tuple[PermitRequirement, ...] = ()
    all_permits: Tuple[str, ...] = ()
    by_agency: Tuple[AgencyGroup, ...] = ()
    notes: Tuple[str, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()
    input_hash: Optional[str] = None
    engine_version: str = ENGINE_VERSION

    @property
    def is_valid(self) -> bool:
        """False when a blocking error prevented evaluation."""
        return not any(d.level == DiagnosticLevel.ERROR.value for d in self.diagnostics)

    @property
    def warnings(self) -> Tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.level == DiagnosticLevel.WARNING.value)

    @property
    def errors(self) -> Tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.level == DiagnosticLevel.ERROR.value)

    @property
    def requirements(self) -> List[PermitRequirement]:
        """All requirements, in all_permits order."""
        by_permit = {
            r.permit: r
            for r in self.definitely_required + self.likely_required + self.conditional
        }
        return [by_permit[p] for p in self.all_permits]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_track": self.workflow_track,
            "definitely_required": [r.to_dict() for r in self.definitely_required],
            "likely_required": [r.to_dict() for r in self.likely_required],
            "conditional": [r.to_dict() for r in self.conditional],
            "all_permits": list(self.all_permits),
            "by_agency": [g.to_dict() for g in self.by_agency],
            "notes": list(self.notes),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "input_hash": self.input_hash,
            "engine_version": self.engine_version,
            "is_valid": self.is_valid,
        }
