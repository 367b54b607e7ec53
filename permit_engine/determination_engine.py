"""
Permit Determination Engine - Rule Evaluation

DECISION-ONLY engine that answers: "Which permits does this project need?"

CRITICAL CONSTRAINTS (NON-NEGOTIABLE):
- STATELESS: Holds no state between calls
- DETERMINISTIC: Same facts ALWAYS produce the same summary
- NO SIDE EFFECTS: No I/O, no persistence, no notifications
- NO CRASH ON BAD TAGS: Inconsistent improvement tags are excluded and
  reported as warnings, never raised
- BASE PERMIT ALWAYS: The track's base permit is always in the result

Deduplication: when several rules target the same permit, the strongest
confidence wins (DEFINITE > LIKELY > CONDITIONAL), rationales are joined
with "; ", and the permit keeps the position of its first rule.
"""

import logging
import os
from dataclasses import replace
from typing import Optional, Dict, List, Tuple

from .agency_registry import get_permit_info, permit_display_name
from .engine_config import CONFIG_PATH_ENV, load_engine_config
from .fact_normalizer import RawInput, normalize_facts
from .permit_model import (
    ConfigurationError,
    Confidence,
    EvaluationResult,
    FactModel,
    InconsistentFactsWarning,
    PermitRequirement,
    PermitSummary,
    ENGINE_VERSION,
    RATIONALE_SEPARATOR,
    TRACK_BASE_PERMIT,
    TRACK_IMPROVEMENT_TYPES,
    higher_confidence,
)
from .permit_rules import PERMIT_RULES, PermitRule, RuleSet, build_rule_set
from .summary_builder import summarize, explain

logger = logging.getLogger("determination_engine")

BASE_PERMIT_RULE_ID = "track-base-permit"


class PermitDeterminationEngine:
    """
    Applies a RuleSet to a FactModel.

    The engine holds only its (immutable) rule set, so one instance can be
    shared freely and called on every form edit.
    """

    def __init__(self, rule_set: Optional[RuleSet] = None):
        self._rule_set = rule_set if rule_set is not None else PERMIT_RULES
        self._version = ENGINE_VERSION

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------
    def evaluate_facts(self, facts: FactModel) -> EvaluationResult:
        """
        Evaluate facts against every rule.

        1. Exclude improvement tags that do not belong to the track
        2. Apply all rules for the track
        3. Deduplicate by permit, keeping the highest confidence
        4. Guarantee the base permit

        Returns:
            EvaluationResult in rule-declaration order
        """
        input_hash = facts.compute_hash()
        consistent_facts, warnings = self._check_consistency(facts)

        fired = [
            rule for rule in self._rule_set.for_track(facts.workflow_track)
            if rule.applies(consistent_facts)
        ]
        requirements = self._merge(fired)
        requirements = self._ensure_base_permit(requirements, facts.workflow_track)

        logger.debug(
            f"Evaluated track={facts.workflow_track} hash={input_hash[:12]} "
            f"rules_fired={[r.rule_id for r in fired]}"
        )

        return EvaluationResult(
            workflow_track=facts.workflow_track,
            requirements=tuple(requirements),
            warnings=tuple(warnings),
            input_hash=input_hash,
            engine_version=self._version,
            elevation_feet=facts.elevation_feet,
        )

    def evaluate(self, raw: RawInput) -> PermitSummary:
        """
        Normalize, evaluate and summarize.

        A ConfigurationError does not escape: the summary comes back empty
        with an error diagnostic (is_valid is False).
        """
        try:
            return self.evaluate_strict(raw)
        except ConfigurationError as e:
            return _rejected_summary(e)

    def evaluate_strict(self, raw: RawInput) -> PermitSummary:
        """
        Normalize, evaluate and summarize.

        Raises:
            ConfigurationError: facts cannot be normalized
        """
        facts = normalize_facts(raw)
        return summarize(self.evaluate_facts(facts))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _check_consistency(
        self, facts: FactModel
    ) -> Tuple[FactModel, List[InconsistentFactsWarning]]:
        """Split off improvement tags that do not belong to the track."""
        allowed = TRACK_IMPROVEMENT_TYPES[facts.workflow_track]
        inconsistent = sorted(facts.improvement_types - allowed)
        if not inconsistent:
            return facts, []

        warnings = []
        for tag in inconsistent:
            message = (
                f"Improvement type '{tag}' is not valid for the "
                f"{facts.workflow_track} track and was ignored"
            )
            logger.warning(message)
            warnings.append(InconsistentFactsWarning(
                improvement_type=tag,
                workflow_track=facts.workflow_track,
                message=message,
            ))

        consistent = replace(facts, improvement_types=facts.improvement_types & allowed)
        return consistent, warnings

    def _merge(self, fired: List[PermitRule]) -> List[PermitRequirement]:
        """Deduplicate fired rules by permit, first occurrence keeps its slot."""
        order: List[str] = []
        merged: Dict[str, PermitRequirement] = {}
        rationales: Dict[str, List[str]] = {}

        for rule in fired:
            existing = merged.get(rule.permit)
            if existing is None:
                order.append(rule.permit)
                merged[rule.permit] = PermitRequirement(
                    permit=rule.permit,
                    name=permit_display_name(rule.permit),
                    confidence=rule.confidence,
                    rationale=rule.rationale,
                    agency_id=rule.agency_id,
                    rule_ids=(rule.rule_id,),
                )
                rationales[rule.permit] = [rule.rationale]
                continue

            # Identical rationales are joined once
            if rule.rationale not in rationales[rule.permit]:
                rationales[rule.permit].append(rule.rationale)
            merged[rule.permit] = replace(
                existing,
                confidence=higher_confidence(existing.confidence, rule.confidence),
                rationale=RATIONALE_SEPARATOR.join(rationales[rule.permit]),
                rule_ids=existing.rule_ids + (rule.rule_id,),
            )

        return [merged[p] for p in order]

    def _ensure_base_permit(
        self, requirements: List[PermitRequirement], track: str
    ) -> List[PermitRequirement]:
        base = TRACK_BASE_PERMIT[track]
        if any(r.permit == base for r in requirements):
            return requirements

        info = get_permit_info(base)
        logger.debug(f"No rule fired for base permit {base}; adding it")
        return [PermitRequirement(
            permit=base,
            name=info.name,
            confidence=Confidence.DEFINITE.value,
            rationale=info.regulatory_basis,
            agency_id=info.agency_id,
            rule_ids=(BASE_PERMIT_RULE_ID,),
        )] + requirements


# -----------------------------------------------------------------------------
# Module-Level Functions
# -----------------------------------------------------------------------------

# Singleton instance, keyed by the config file it was built from
_engine: Optional[PermitDeterminationEngine] = None
_engine_config_path: Optional[str] = None


def _rejected_summary(error: ConfigurationError) -> PermitSummary:
    logger.warning(f"Evaluation rejected: {error.message}")
    return PermitSummary(
        workflow_track=None,
        diagnostics=(error.to_diagnostic(),),
        engine_version=ENGINE_VERSION,
    )


def get_determination_engine() -> PermitDeterminationEngine:
    """
    Get the engine singleton.

    Thresholds come from the file named by PERMIT_ENGINE_CONFIG; the engine
    is rebuilt when that variable changes.

    Raises:
        ConfigurationError: the configured file is missing or invalid
    """
    global _engine, _engine_config_path
    config_path = os.getenv(CONFIG_PATH_ENV) or None
    if _engine is None or config_path != _engine_config_path:
        if config_path is None:
            rule_set = PERMIT_RULES
        else:
            rule_set = build_rule_set(load_engine_config(config_path))
            logger.info(f"Determination engine thresholds loaded from {config_path}")
        _engine = PermitDeterminationEngine(rule_set=rule_set)
        _engine_config_path = config_path
    return _engine


def _engine_for(rule_set: Optional[RuleSet]) -> PermitDeterminationEngine:
    if rule_set is None:
        return get_determination_engine()
    return PermitDeterminationEngine(rule_set=rule_set)


def evaluate(raw: RawInput, rule_set: Optional[RuleSet] = None) -> PermitSummary:
    """
    Determine required permits for a raw project-details record.

    Errors and warnings, including an invalid engine config file, are
    returned as diagnostics on the summary.
    """
    try:
        engine = _engine_for(rule_set)
    except ConfigurationError as e:
        return _rejected_summary(e)
    return engine.evaluate(raw)


def evaluate_strict(raw: RawInput, rule_set: Optional[RuleSet] = None) -> PermitSummary:
    """Like evaluate(), but raises ConfigurationError on invalid input."""
    return _engine_for(rule_set).evaluate_strict(raw)


def evaluate_facts(facts: FactModel, rule_set: Optional[RuleSet] = None) -> EvaluationResult:
    """Apply the rule set to already-normalized facts."""
    return _engine_for(rule_set).evaluate_facts(facts)


__all__ = [
    "PermitDeterminationEngine",
    "get_determination_engine",
    "evaluate",
    "evaluate_strict",
    "evaluate_facts",
    "explain",
    "BASE_PERMIT_RULE_ID",
]
