"""Unit tests for milestone template validation and default templates.

Tests cover:
- Weight-sum validation with exact decimal arithmetic
- Empty and duplicate-name rejection
- Ordering of definitions
- Reporting bucket mapping
- Default template integrity
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from progresstrack.earned_value.templates import (
    DEFAULT_TEMPLATES,
    MilestoneBucket,
    MilestoneDefinition,
    bucket_for,
    definitions_of,
    parse_milestones,
    validate_template,
)
from progresstrack.exceptions import TemplateWeightError


class TestValidateTemplate:
    """Test validate_template acceptance and rejection rules."""

    def test_accepts_weights_summing_to_100(self) -> None:
        """Test that a template summing to exactly 100 is accepted."""
        result = validate_template(
            [
                {"name": "Receive", "weight": 5, "order": 1},
                {"name": "Fabricate", "weight": 95, "order": 2, "is_partial": True},
            ]
        )
        assert [d.name for d in result] == ["Receive", "Fabricate"]
        assert sum(d.weight for d in result) == Decimal("100")

    def test_rejects_sum_below_100(self) -> None:
        """Test that a template summing below 100 is rejected with the total."""
        with pytest.raises(TemplateWeightError) as exc_info:
            validate_template(
                [
                    {"name": "Receive", "weight": 5, "order": 1},
                    {"name": "Install", "weight": 90, "order": 2},
                ]
            )
        assert exc_info.value.total == Decimal("95")
        assert exc_info.value.reason == "weight_sum"

    def test_rejects_sum_above_100(self) -> None:
        """Test that a template summing above 100 is rejected."""
        with pytest.raises(TemplateWeightError, match="sum to 100"):
            validate_template(
                [
                    {"name": "Receive", "weight": 50, "order": 1},
                    {"name": "Install", "weight": "50.01", "order": 2},
                ]
            )

    def test_fractional_weights_sum_exactly(self) -> None:
        """Test that weights like 33.33 + 33.33 + 33.34 pass without float drift."""
        result = validate_template(
            [
                {"name": "A", "weight": "33.33", "order": 1},
                {"name": "B", "weight": "33.33", "order": 2},
                {"name": "C", "weight": "33.34", "order": 3},
            ]
        )
        assert len(result) == 3

    def test_rejects_empty_list(self) -> None:
        """Test that an empty milestone list is rejected."""
        with pytest.raises(TemplateWeightError) as exc_info:
            validate_template([])
        assert exc_info.value.reason == "empty"

    def test_rejects_duplicate_names_case_insensitively(self) -> None:
        """Test that milestone names must be unique ignoring case."""
        with pytest.raises(TemplateWeightError) as exc_info:
            validate_template(
                [
                    {"name": "Receive", "weight": 50, "order": 1},
                    {"name": "receive", "weight": 50, "order": 2},
                ]
            )
        assert exc_info.value.reason == "duplicate_name"

    def test_rejects_weight_out_of_range(self) -> None:
        """Test that a single weight above 100 fails definition validation."""
        with pytest.raises(TemplateWeightError) as exc_info:
            validate_template([{"name": "Too much", "weight": 101, "order": 1}])
        assert exc_info.value.reason == "invalid_definition"

    def test_rejects_more_than_two_decimal_places(self) -> None:
        """Test that weights are limited to two decimal places."""
        with pytest.raises(TemplateWeightError) as exc_info:
            validate_template([{"name": "A", "weight": "99.999", "order": 1}])
        assert exc_info.value.reason == "invalid_definition"

    def test_thirds_summing_to_100_are_still_rejected(self) -> None:
        """Test that three-decimal weights fail even when they sum to exactly 100."""
        thirds = [
            {"name": "Install", "weight": "33.333", "order": 1},
            {"name": "Test", "weight": "33.333", "order": 2},
            {"name": "Restore", "weight": "33.334", "order": 3},
        ]
        with pytest.raises(TemplateWeightError) as exc_info:
            validate_template(thirds)
        assert exc_info.value.reason == "invalid_definition"

    def test_returns_definitions_sorted_by_order(self) -> None:
        """Test that the validated list is sorted by order."""
        result = validate_template(
            [
                {"name": "Second", "weight": 40, "order": 2},
                {"name": "First", "weight": 60, "order": 1},
            ]
        )
        assert [d.name for d in result] == ["First", "Second"]


class TestDefinitionsOf:
    """Test definitions_of accepts templates and plain lists."""

    def test_none_yields_empty_list(self) -> None:
        assert definitions_of(None) == []

    def test_object_with_definitions(self) -> None:
        """Test that objects exposing .definitions are read in order."""

        class FakeTemplate:
            definitions = [
                MilestoneDefinition(name="B", weight=50, order=2),
                MilestoneDefinition(name="A", weight=50, order=1),
            ]

        assert [d.name for d in definitions_of(FakeTemplate())] == ["A", "B"]

    def test_plain_sequence(self) -> None:
        defs = parse_milestones([{"name": "Only", "weight": 100, "order": 1}])
        assert definitions_of(defs)[0].name == "Only"


class TestBuckets:
    """Test milestone-to-bucket mapping."""

    @pytest.mark.parametrize(
        ("name", "bucket"),
        [
            ("Receive", MilestoneBucket.receive),
            ("Erect", MilestoneBucket.install),
            ("Weld Made", MilestoneBucket.install),
            ("Fit-Up", MilestoneBucket.install),
            ("Punch", MilestoneBucket.punch),
            ("Hydrotest", MilestoneBucket.test),
            ("Restore", MilestoneBucket.restore),
            ("  test  ", MilestoneBucket.test),
        ],
    )
    def test_known_names(self, name: str, bucket: MilestoneBucket) -> None:
        assert bucket_for(name) is bucket

    def test_unknown_name_defaults_to_install(self) -> None:
        assert bucket_for("Bolt Torque") is MilestoneBucket.install


class TestDefaultTemplates:
    """Test the seeded default templates."""

    def test_eleven_categories(self) -> None:
        assert set(DEFAULT_TEMPLATES) == {
            "spool",
            "field_weld",
            "support",
            "valve",
            "fitting",
            "flange",
            "instrument",
            "tubing",
            "hose",
            "misc_component",
            "threaded_pipe",
        }

    @pytest.mark.parametrize("category", sorted(DEFAULT_TEMPLATES))
    def test_every_default_template_is_valid(self, category: str) -> None:
        """Test that each default template passes validation."""
        definitions = validate_template(DEFAULT_TEMPLATES[category])
        assert sum(d.weight for d in definitions) == Decimal("100")

    def test_field_weld_requires_approval_for_weld_made(self) -> None:
        defs = {d.name: d for d in validate_template(DEFAULT_TEMPLATES["field_weld"])}
        assert defs["Weld Made"].requires_secondary_approval is True
        assert defs["Fit-Up"].requires_secondary_approval is False

    def test_threaded_pipe_has_partial_milestones(self) -> None:
        defs = validate_template(DEFAULT_TEMPLATES["threaded_pipe"])
        partial = [d.name for d in defs if d.is_partial]
        assert partial == ["Fabricate", "Install", "Erect", "Connect", "Support"]
