"""
Permit Rule Set - Declarative Permitting Rules

Each rule maps a predicate over the FactModel to a candidate permit
requirement with a confidence tier and rationale.

CRITICAL CONSTRAINTS:
- PURE: Predicates read only the FactModel passed in
- INDEPENDENT: No rule depends on another rule's output or on order
- REGISTERED: Every rule's permit and agency must exist in the registry
- NAMED THRESHOLDS: Cost cutoffs come from EngineThresholds, never inlined

Declaration order matters only for presentation: the evaluator returns
requirements in the order rules are declared here.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .agency_registry import (
    AGENCY_REGISTRY,
    PERMIT_REGISTRY,
    agency_owns_permit,
    AGENCY_CWA,
    AGENCY_BONNEY_LAKE,
    AGENCY_PIERCE_COUNTY,
    AGENCY_WDFW,
    AGENCY_USACE,
    AGENCY_ECOLOGY,
    AGENCY_LNI,
    AGENCY_TPCHD,
    AGENCY_PSE,
)
from .engine_config import DEFAULT_CONFIG, EngineConfig, EngineThresholds
from .permit_model import (
    ConfigurationError,
    Confidence,
    FactModel,
    ImprovementType,
    PermitKind,
    WorkflowTrack,
    LAKE_TAPPS_HIGH_WATER_ELEVATION_FEET,
)

logger = logging.getLogger("permit_rules")

Predicate = Callable[[FactModel], bool]

COVERED_STRUCTURE_KEYWORDS = ("cover", "roof", "enclosed")
ELECTRICAL_KEYWORDS = ("electric", "power", "lighting")


# -----------------------------------------------------------------------------
# Permit Rule (Frozen - Immutable)
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class PermitRule:
    """
    A deterministic permitting rule.

    The track check is part of the rule; the predicate covers the rest.
    """
    rule_id: str
    name: str
    track: str  # WorkflowTrack value
    permit: str  # PermitKind value
    confidence: str  # Confidence value
    agency_id: str
    rationale: str
    predicate: Predicate

    def applies(self, facts: FactModel) -> bool:
        """Check if this rule fires for the given facts."""
        return facts.workflow_track == self.track and bool(self.predicate(facts))


def _always(facts: FactModel) -> bool:
    return True


def _has(improvement_type: ImprovementType) -> Predicate:
    return lambda facts: facts.has_improvement(improvement_type.value)


def _mentions(keywords: Tuple[str, ...]) -> Predicate:
    return lambda facts: any(kw in facts.description.lower() for kw in keywords)


def format_cents(cents: int) -> str:
    """Format integer cents as a dollar string, e.g. 704700 -> "$7,047.00"."""
    return f"${cents // 100:,}.{cents % 100:02d}"


# -----------------------------------------------------------------------------
# Rule Set
# -----------------------------------------------------------------------------
class RuleSet:
    """
    Ordered, validated collection of permit rules.

    Immutable after construction. Validation fails fast with
    ConfigurationError when a rule references an unregistered permit or
    agency, or when rule ids collide.
    """

    def __init__(self, rules: Tuple[PermitRule, ...], thresholds: Optional[EngineThresholds] = None):
        self._rules = tuple(rules)
        self._thresholds = thresholds or DEFAULT_CONFIG.thresholds
        validate_rules(self._rules)
        self._by_id: Dict[str, PermitRule] = {r.rule_id: r for r in self._rules}

    @property
    def rules(self) -> Tuple[PermitRule, ...]:
        return self._rules

    @property
    def thresholds(self) -> EngineThresholds:
        return self._thresholds

    def __iter__(self) -> Iterator[PermitRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, rule_id: str) -> Optional[PermitRule]:
        return self._by_id.get(rule_id)

    def for_track(self, track: str) -> Tuple[PermitRule, ...]:
        return tuple(r for r in self._rules if r.track == track)


def validate_rules(rules: Tuple[PermitRule, ...]) -> None:
    """
    Validate rules against the static registry.

    Raises:
        ConfigurationError: on the first invalid rule
    """
    seen = set()
    for rule in rules:
        if rule.rule_id in seen:
            raise ConfigurationError(
                f"Duplicate rule id: {rule.rule_id}", field="rule_id", value=rule.rule_id
            )
        seen.add(rule.rule_id)

        if rule.track not in [t.value for t in WorkflowTrack]:
            raise ConfigurationError(
                f"Rule {rule.rule_id} references unknown track {rule.track!r}",
                field="track",
                value=rule.track,
            )
        if rule.confidence not in [c.value for c in Confidence]:
            raise ConfigurationError(
                f"Rule {rule.rule_id} has invalid confidence {rule.confidence!r}",
                field="confidence",
                value=rule.confidence,
            )

        info = PERMIT_REGISTRY.get(rule.permit)
        if info is None:
            raise ConfigurationError(
                f"Rule {rule.rule_id} references unregistered permit {rule.permit!r}",
                field="permit",
                value=rule.permit,
            )
        if rule.agency_id not in AGENCY_REGISTRY:
            raise ConfigurationError(
                f"Rule {rule.rule_id} references unregistered agency {rule.agency_id!r}",
                field="agency_id",
                value=rule.agency_id,
            )
        if not agency_owns_permit(rule.agency_id, rule.permit):
            raise ConfigurationError(
                f"Rule {rule.rule_id}: permit {rule.permit} is issued by "
                f"{info.agency_id}, not {rule.agency_id}",
                field="agency_id",
                value=rule.agency_id,
            )
        if rule.track not in info.tracks:
            raise ConfigurationError(
                f"Rule {rule.rule_id}: permit {rule.permit} does not apply to track {rule.track}",
                field="track",
                value=rule.track,
            )


# -----------------------------------------------------------------------------
# Rule Catalogue
# -----------------------------------------------------------------------------
def _waterfront_rules(t: EngineThresholds) -> List[PermitRule]:
    exemption = t.shoreline_exemption_threshold_cents
    federal = t.federal_permit_threshold_cents
    building = t.building_permit_value_threshold_cents
    track = WorkflowTrack.WATERFRONT.value

    return [
        PermitRule(
            rule_id="base-license",
            name="CWA License",
            track=track,
            permit=PermitKind.CWA_LICENSE.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_CWA,
            rationale="Lake Tapps Reservoir is owned by Cascade Water Alliance; "
                      "all improvements on CWA property require a license agreement",
            predicate=_always,
        ),
        PermitRule(
            rule_id="shoreline-exempt",
            name="Shoreline Exemption",
            track=track,
            permit=PermitKind.SHORELINE_EXEMPTION.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_BONNEY_LAKE,
            rationale=f"Project cost is at or under the {format_cents(exemption)} "
                      f"shoreline exemption threshold",
            predicate=lambda f: f.estimated_cost_cents <= exemption,
        ),
        PermitRule(
            rule_id="shoreline-substantial",
            name="Shoreline Substantial Development",
            track=track,
            permit=PermitKind.SHORELINE_SUBSTANTIAL.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_BONNEY_LAKE,
            rationale=f"Project cost exceeds the {format_cents(exemption)} "
                      f"shoreline exemption threshold; full Shoreline Master Program review required",
            predicate=lambda f: f.estimated_cost_cents > exemption,
        ),
        PermitRule(
            rule_id="hpa-required",
            name="Hydraulic Project Approval",
            track=track,
            permit=PermitKind.HPA.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_WDFW,
            rationale=f"Work in the water or below the {LAKE_TAPPS_HIGH_WATER_ELEVATION_FEET}' "
                      f"high-water elevation uses, obstructs or changes waters of the state",
            predicate=lambda f: f.in_water or f.below_high_water_line,
        ),
        PermitRule(
            rule_id="federal-mooring",
            name="Section 10 - Mooring Piles",
            track=track,
            permit=PermitKind.SECTION_10.value,
            confidence=Confidence.LIKELY.value,
            agency_id=AGENCY_USACE,
            rationale="Mooring piles typically require Section 10 authorization",
            predicate=_has(ImprovementType.MOORING_PILE),
        ),
        PermitRule(
            rule_id="federal-largescale",
            name="Section 10 - Large In-Water Project",
            track=track,
            permit=PermitKind.SECTION_10.value,
            confidence=Confidence.LIKELY.value,
            agency_id=AGENCY_USACE,
            rationale=f"Significant in-water work above {format_cents(federal)}",
            predicate=lambda f: f.in_water and f.estimated_cost_cents > federal,
        ),
        PermitRule(
            rule_id="federal-bulkhead",
            name="Section 10 - Bulkhead",
            track=track,
            permit=PermitKind.SECTION_10.value,
            confidence=Confidence.LIKELY.value,
            agency_id=AGENCY_USACE,
            rationale="Bulkhead/seawall construction often requires federal authorization",
            predicate=_has(ImprovementType.BULKHEAD),
        ),
        PermitRule(
            rule_id="federal-below-ohwm",
            name="Section 10 - Below OHWM",
            track=track,
            permit=PermitKind.SECTION_10.value,
            confidence=Confidence.CONDITIONAL.value,
            agency_id=AGENCY_USACE,
            rationale="Project extends below ordinary high water and involves in-water work",
            predicate=lambda f: f.in_water and f.below_high_water_line,
        ),
        PermitRule(
            rule_id="dredge-fill-boat-ramp",
            name="Section 404 - Boat Ramp",
            track=track,
            permit=PermitKind.SECTION_404.value,
            confidence=Confidence.CONDITIONAL.value,
            agency_id=AGENCY_USACE,
            rationale="Boat ramps typically involve dredge or fill activities",
            predicate=_has(ImprovementType.BOAT_RAMP),
        ),
        PermitRule(
            rule_id="water-quality-boat-ramp",
            name="401 Certification - Boat Ramp",
            track=track,
            permit=PermitKind.WATER_QUALITY_401.value,
            confidence=Confidence.CONDITIONAL.value,
            agency_id=AGENCY_ECOLOGY,
            rationale="Dredge or fill work needs state water quality certification",
            predicate=_has(ImprovementType.BOAT_RAMP),
        ),
        PermitRule(
            rule_id="building-boathouse",
            name="Building Permit - Boathouse",
            track=track,
            permit=PermitKind.BUILDING_PERMIT.value,
            confidence=Confidence.LIKELY.value,
            agency_id=AGENCY_BONNEY_LAKE,
            rationale="Boathouses are structures that require building permits",
            predicate=_has(ImprovementType.BOATHOUSE),
        ),
        PermitRule(
            rule_id="building-covered-structure",
            name="Building Permit - Covered Structure",
            track=track,
            permit=PermitKind.BUILDING_PERMIT.value,
            confidence=Confidence.LIKELY.value,
            agency_id=AGENCY_BONNEY_LAKE,
            rationale="Covered or enclosed structures typically require building permits",
            predicate=_mentions(COVERED_STRUCTURE_KEYWORDS),
        ),
        PermitRule(
            rule_id="building-electrical",
            name="Building Permit - Electrical",
            track=track,
            permit=PermitKind.BUILDING_PERMIT.value,
            confidence=Confidence.LIKELY.value,
            agency_id=AGENCY_BONNEY_LAKE,
            rationale="Electrical installations require permits",
            predicate=_mentions(ELECTRICAL_KEYWORDS),
        ),
        PermitRule(
            rule_id="building-large-value",
            name="Building Permit - Project Value",
            track=track,
            permit=PermitKind.BUILDING_PERMIT.value,
            confidence=Confidence.CONDITIONAL.value,
            agency_id=AGENCY_BONNEY_LAKE,
            rationale=f"Project value above {format_cents(building)} suggests substantial "
                      f"construction that may require a building permit",
            predicate=lambda f: f.estimated_cost_cents > building,
        ),
    ]


def _solar_rules(t: EngineThresholds) -> List[PermitRule]:
    track = WorkflowTrack.SOLAR.value

    return [
        PermitRule(
            rule_id="solar-base",
            name="Solar Building Permit",
            track=track,
            permit=PermitKind.SOLAR_BUILDING_PERMIT.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_PIERCE_COUNTY,
            rationale="Solar energy systems require a building permit",
            predicate=_always,
        ),
        PermitRule(
            rule_id="solar-electrical",
            name="L&I Electrical - Solar",
            track=track,
            permit=PermitKind.LNI_ELECTRICAL_PERMIT.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_LNI,
            rationale="PV wiring and inverter installation require an electrical permit",
            predicate=_always,
        ),
        PermitRule(
            rule_id="solar-interconnection",
            name="Utility Interconnection",
            track=track,
            permit=PermitKind.UTILITY_INTERCONNECTION.value,
            confidence=Confidence.LIKELY.value,
            agency_id=AGENCY_PSE,
            rationale="Grid-tied PV arrays need a net metering interconnection agreement",
            predicate=lambda f: (
                f.has_improvement(ImprovementType.ROOFTOP_SOLAR.value)
                or f.has_improvement(ImprovementType.GROUND_MOUNT_SOLAR.value)
            ),
        ),
        PermitRule(
            rule_id="solar-battery-electrical",
            name="L&I Electrical - Battery Storage",
            track=track,
            permit=PermitKind.LNI_ELECTRICAL_PERMIT.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_LNI,
            rationale="Battery energy storage systems require electrical inspection",
            predicate=_has(ImprovementType.BATTERY_STORAGE),
        ),
    ]


def _adu_rules(t: EngineThresholds) -> List[PermitRule]:
    track = WorkflowTrack.ADU.value

    return [
        PermitRule(
            rule_id="adu-base",
            name="ADU Building Permit",
            track=track,
            permit=PermitKind.ADU_BUILDING_PERMIT.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_PIERCE_COUNTY,
            rationale="ADUs are not exempt from building permit (habitable space)",
            predicate=_always,
        ),
        PermitRule(
            rule_id="adu-planning",
            name="ADU Planning Approval",
            track=track,
            permit=PermitKind.PLANNING_APPROVAL.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_PIERCE_COUNTY,
            rationale="ADU size, height and setback standards are reviewed by planning",
            predicate=_always,
        ),
        PermitRule(
            rule_id="adu-existing-unit",
            name="ADU Density Review",
            track=track,
            permit=PermitKind.PLANNING_APPROVAL.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_PIERCE_COUNTY,
            rationale="Lot already has an ADU; per-lot ADU limits must be confirmed",
            predicate=lambda f: f.has_existing_adu,
        ),
        PermitRule(
            rule_id="adu-septic",
            name="Septic Permit",
            track=track,
            permit=PermitKind.SEPTIC_PERMIT.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_TPCHD,
            rationale="Property is not on sewer; the on-site sewage system must serve the ADU",
            predicate=lambda f: not f.on_sewer,
        ),
        PermitRule(
            rule_id="adu-shoreline",
            name="ADU Shoreline Permit",
            track=track,
            permit=PermitKind.ADU_SHORELINE_PERMIT.value,
            confidence=Confidence.DEFINITE.value,
            agency_id=AGENCY_BONNEY_LAKE,
            rationale="ADU is near the shoreline and within Shoreline Management Act jurisdiction",
            predicate=lambda f: f.near_shoreline,
        ),
        PermitRule(
            rule_id="adu-detached-electrical",
            name="L&I Electrical - Detached ADU",
            track=track,
            permit=PermitKind.LNI_ELECTRICAL_PERMIT.value,
            confidence=Confidence.LIKELY.value,
            agency_id=AGENCY_LNI,
            rationale="Detached ADUs usually need a new feeder or subpanel",
            predicate=_has(ImprovementType.DETACHED_ADU),
        ),
    ]


def build_rule_set(config: Optional[EngineConfig] = None) -> RuleSet:
    """
    Build the validated rule set for a configuration.

    Thresholds are bound into the predicates at build time, so every rule
    stays a pure function of the FactModel.
    """
    config = config or DEFAULT_CONFIG
    thresholds = config.thresholds
    rules = _waterfront_rules(thresholds) + _solar_rules(thresholds) + _adu_rules(thresholds)
    rule_set = RuleSet(tuple(rules), thresholds=thresholds)
    logger.debug(f"Built rule set with {len(rule_set)} rules")
    return rule_set


PERMIT_RULES: RuleSet = build_rule_set(DEFAULT_CONFIG)
