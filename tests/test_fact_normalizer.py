"""
Fact Model & Normalizer Tests

Tests proving:
1. LOCKED ENUMS: Track, confidence and permit enumerations are fixed
2. IMMUTABILITY: FactModel cannot be mutated after creation
3. DEFAULTS: Missing fields get documented defaults
4. COST PARSING: Dollars convert to integer cents exactly
5. ALIASES: camelCase, snake_case and legacy keys are all accepted
6. REJECTION: Bad tracks, categories and costs raise ConfigurationError
"""

import pytest
from dataclasses import FrozenInstanceError

from permit_engine.determination_engine import evaluate
from permit_engine.fact_normalizer import (
    ProjectDetailsInput,
    create_facts,
    normalize_facts,
)
from permit_engine.permit_model import (
    ConfigurationError,
    Confidence,
    FactModel,
    PermitKind,
    ProjectCategory,
    WorkflowTrack,
    TRACK_BASE_PERMIT,
    higher_confidence,
)


# =============================================================================
# Section 1: LOCKED ENUMS
# =============================================================================

class TestLockedEnums:

    def test_exactly_three_tracks(self):
        assert {t.value for t in WorkflowTrack} == {"waterfront", "solar", "adu"}

    def test_exactly_three_confidences(self):
        assert {c.value for c in Confidence} == {"definite", "likely", "conditional"}

    def test_section_10_and_404_distinct(self):
        assert PermitKind.SECTION_10.value != PermitKind.SECTION_404.value

    def test_every_track_has_base_permit(self):
        for track in WorkflowTrack:
            assert track.value in TRACK_BASE_PERMIT

    @pytest.mark.parametrize("first,second,expected", [
        ("definite", "likely", "definite"),
        ("conditional", "likely", "likely"),
        ("conditional", "definite", "definite"),
        ("likely", "likely", "likely"),
    ])
    def test_higher_confidence(self, first, second, expected):
        assert higher_confidence(first, second) == expected


# =============================================================================
# Section 2: FACT MODEL
# =============================================================================

class TestFactModel:

    def test_frozen(self):
        facts = FactModel(workflow_track="waterfront")
        with pytest.raises(FrozenInstanceError):
            facts.estimated_cost_cents = 100

    def test_defaults(self):
        facts = FactModel(workflow_track="adu")
        assert facts.category == ProjectCategory.NEW_CONSTRUCTION.value
        assert facts.improvement_types == frozenset()
        assert facts.estimated_cost_cents == 0
        assert facts.in_water is False
        assert facts.on_sewer is False
        assert facts.elevation_feet is None

    def test_unknown_track_rejected(self):
        with pytest.raises(ConfigurationError):
            FactModel(workflow_track="garage")

    def test_negative_cost_rejected(self):
        with pytest.raises(ConfigurationError):
            FactModel(workflow_track="waterfront", estimated_cost_cents=-1)

    def test_float_cost_rejected(self):
        with pytest.raises(ConfigurationError):
            FactModel(workflow_track="waterfront", estimated_cost_cents=7047.0)

    def test_mutable_tags_rejected(self):
        with pytest.raises(ConfigurationError):
            FactModel(workflow_track="waterfront", improvement_types={"dock"})

    def test_hash_is_stable(self):
        first = FactModel(workflow_track="solar", improvement_types=frozenset({"rooftop_solar"}))
        second = FactModel(workflow_track="solar", improvement_types=frozenset({"rooftop_solar"}))
        assert first.compute_hash() == second.compute_hash()
        assert len(first.compute_hash()) == 64

    def test_hash_changes_with_facts(self):
        first = FactModel(workflow_track="waterfront", estimated_cost_cents=704700)
        second = FactModel(workflow_track="waterfront", estimated_cost_cents=704701)
        assert first.compute_hash() != second.compute_hash()

    def test_base_permit(self):
        assert FactModel(workflow_track="solar").base_permit == "solar_building_permit"


# =============================================================================
# Section 3: NORMALIZATION
# =============================================================================

class TestNormalizeDefaults:

    def test_minimal_record(self):
        facts = normalize_facts({"workflowTrack": "waterfront"})
        assert facts == FactModel(workflow_track="waterfront")

    def test_null_fields_use_defaults(self):
        facts = normalize_facts({
            "workflowTrack": "adu",
            "category": None,
            "improvementTypes": None,
            "onSewer": None,
            "description": None,
        })
        assert facts.category == "new_construction"
        assert facts.improvement_types == frozenset()
        assert facts.on_sewer is False
        assert facts.description == ""

    def test_unknown_keys_ignored(self):
        facts = normalize_facts({"workflowTrack": "solar", "propertyOwner": "Pat"})
        assert facts.workflow_track == "solar"

    def test_unused_form_fields_not_carried(self):
        """Fields no rule reads stay out of the facts and their hash."""
        facts = normalize_facts({"workflowTrack": "waterfront", "existingStructure": True})
        assert facts == FactModel(workflow_track="waterfront")
        assert "existing_structure" not in facts.to_dict()

    def test_fact_model_passthrough(self):
        facts = FactModel(workflow_track="adu")
        assert normalize_facts(facts) is facts

    def test_pydantic_input_accepted(self):
        details = ProjectDetailsInput.model_validate({"workflowTrack": "solar", "inWater": True})
        facts = normalize_facts(details)
        assert facts.workflow_track == "solar"
        assert facts.in_water is True


class TestNormalizeAliases:

    def test_workflow_type_alias(self):
        assert normalize_facts({"workflowType": "adu"}).workflow_track == "adu"

    def test_track_case_insensitive(self):
        assert normalize_facts({"workflowTrack": " Waterfront "}).workflow_track == "waterfront"

    def test_snake_case_keys(self):
        facts = create_facts(workflow_track="adu", has_existing_adu=True, on_sewer=True)
        assert facts.has_existing_adu is True
        assert facts.on_sewer is True

    def test_has_existing_adu_aliases(self):
        assert normalize_facts({"workflowTrack": "adu", "hasExistingADU": True}).has_existing_adu
        assert normalize_facts({"workflowTrack": "adu", "hasExistingAdu": True}).has_existing_adu

    def test_elevation_alias(self):
        facts = normalize_facts({"workflowTrack": "waterfront", "elevation": "541.5"})
        assert facts.elevation_feet == 541.5

    def test_tags_normalized(self):
        facts = normalize_facts({
            "workflowTrack": "waterfront",
            "improvementTypes": [" Boat Lift ", "mooring-pile", "DOCK", ""],
        })
        assert facts.improvement_types == frozenset({"boat_lift", "mooring_pile", "dock"})


class TestCostParsing:

    @pytest.mark.parametrize("value,cents", [
        ("7,047.00", 704700),
        ("$7,047.00", 704700),
        (7047, 704700),
        ("7047.01", 704701),
        (25000, 2500000),
        ("0.005", 1),
        ("", 0),
        (None, 0),
    ])
    def test_dollars_to_cents(self, value, cents):
        facts = normalize_facts({"workflowTrack": "waterfront", "estimatedCost": value})
        assert facts.estimated_cost_cents == cents

    def test_cents_take_precedence(self):
        facts = normalize_facts({
            "workflowTrack": "waterfront",
            "estimatedCostCents": 100,
            "estimatedCost": 999999,
        })
        assert facts.estimated_cost_cents == 100

    @pytest.mark.parametrize("value", ["lots", "NaN", True])
    def test_unparseable_cost_rejected(self, value):
        with pytest.raises(ConfigurationError) as exc_info:
            normalize_facts({"workflowTrack": "waterfront", "estimatedCost": value})
        assert exc_info.value.field == "estimatedCost"

    def test_negative_cost_rejected(self):
        with pytest.raises(ConfigurationError):
            normalize_facts({"workflowTrack": "waterfront", "estimatedCost": "-5"})

    @pytest.mark.parametrize("value", [True, False, "704700", 7047.5])
    def test_cents_must_be_an_integer(self, value):
        with pytest.raises(ConfigurationError) as exc_info:
            normalize_facts({"workflowTrack": "waterfront", "estimatedCostCents": value})
        assert exc_info.value.field == "estimatedCostCents"

    def test_boolean_cents_blocks_evaluation(self):
        summary = evaluate({"workflowTrack": "waterfront", "estimatedCostCents": True})
        assert not summary.is_valid
        assert summary.all_permits == ()


class TestNormalizeRejection:

    def test_missing_track(self):
        with pytest.raises(ConfigurationError) as exc_info:
            normalize_facts({"estimatedCost": 100})
        assert exc_info.value.field == "workflowTrack"

    def test_unknown_category(self):
        with pytest.raises(ConfigurationError) as exc_info:
            normalize_facts({"workflowTrack": "waterfront", "category": "demolition"})
        assert exc_info.value.field == "category"

    def test_non_mapping_input(self):
        with pytest.raises(ConfigurationError):
            normalize_facts(["waterfront"])

    def test_wrongly_typed_field(self):
        with pytest.raises(ConfigurationError):
            normalize_facts({"workflowTrack": "waterfront", "improvementTypes": 5})

    def test_error_converts_to_diagnostic(self):
        with pytest.raises(ConfigurationError) as exc_info:
            normalize_facts({"workflowTrack": "garage"})
        diagnostic = exc_info.value.to_diagnostic()
        assert diagnostic.level == "error"
        assert diagnostic.code == "configuration_error"
        assert diagnostic.value == "garage"
