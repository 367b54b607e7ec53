"""
Permit Determination Engine

Derives which permits a property owner's project needs, from which
agencies, with what confidence and why.

- Fact Model: locked enums, immutable FactModel, named cost thresholds
- Normalizer: raw form records (camelCase, partial) to validated facts
- Rule Set: declarative rules per workflow track (waterfront, solar, ADU)
- Evaluator: deterministic, deduplicated, base-permit-first results
- Summary Builder: confidence buckets, agency groups, canonical permit list

Usage:
    from permit_engine import evaluate, explain

    summary = evaluate({"workflowTrack": "waterfront", "estimatedCost": 25000,
                        "improvementTypes": ["dock"], "inWater": True})
    summary.all_permits  # ('cwa_license', 'shoreline_substantial', 'hpa')
"""

from .permit_model import (
    ENGINE_VERSION,
    SHORELINE_EXEMPTION_THRESHOLD_CENTS,
    FEDERAL_PERMIT_THRESHOLD_CENTS,
    BUILDING_PERMIT_VALUE_THRESHOLD_CENTS,
    WorkflowTrack,
    ProjectCategory,
    ImprovementType,
    PermitKind,
    Confidence,
    DiagnosticLevel,
    DiagnosticCode,
    Diagnostic,
    ConfigurationError,
    InconsistentFactsWarning,
    FactModel,
    PermitRequirement,
    EvaluationResult,
    AgencyGroup,
    PermitSummary,
)
from .agency_registry import (
    Agency,
    PermitInfo,
    AGENCY_REGISTRY,
    PERMIT_REGISTRY,
    get_agency_contacts,
)
from .engine_config import EngineConfig, EngineThresholds, load_engine_config
from .fact_normalizer import ProjectDetailsInput, normalize_facts
from .permit_rules import PermitRule, RuleSet, PERMIT_RULES, build_rule_set
from .determination_engine import (
    PermitDeterminationEngine,
    evaluate,
    evaluate_strict,
    evaluate_facts,
)
from .summary_builder import summarize, explain
from .permit_service import PermitDeterminationService

__all__ = [
    "ENGINE_VERSION",
    "SHORELINE_EXEMPTION_THRESHOLD_CENTS",
    "FEDERAL_PERMIT_THRESHOLD_CENTS",
    "BUILDING_PERMIT_VALUE_THRESHOLD_CENTS",
    "WorkflowTrack",
    "ProjectCategory",
    "ImprovementType",
    "PermitKind",
    "Confidence",
    "DiagnosticLevel",
    "DiagnosticCode",
    "Diagnostic",
    "ConfigurationError",
    "InconsistentFactsWarning",
    "FactModel",
    "PermitRequirement",
    "EvaluationResult",
    "AgencyGroup",
    "PermitSummary",
    "Agency",
    "PermitInfo",
    "AGENCY_REGISTRY",
    "PERMIT_REGISTRY",
    "get_agency_contacts",
    "EngineConfig",
    "EngineThresholds",
    "load_engine_config",
    "ProjectDetailsInput",
    "normalize_facts",
    "PermitRule",
    "RuleSet",
    "PERMIT_RULES",
    "build_rule_set",
    "PermitDeterminationEngine",
    "evaluate",
    "evaluate_strict",
    "evaluate_facts",
    "summarize",
    "explain",
    "PermitDeterminationService",
]
