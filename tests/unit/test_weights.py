"""Unit tests for the dimension weight function."""

from __future__ import annotations

import pytest

from progresstrack.config import ManhourConfig
from progresstrack.earned_value.weights import (
    DEFAULT_POLICY,
    CalculationBasis,
    WeightPolicy,
    compute_weight,
    effective_identity_key,
)


class TestDimensionWeights:
    """Test the diameter-based rule."""

    def test_simple_size(self) -> None:
        """Test that a 4 inch valve weighs 4 ** 1.5."""
        result = compute_weight("valve", {"size": "4"})
        assert result.weight == pytest.approx(8.0)
        assert result.basis is CalculationBasis.dimension
        assert result.warning is None
        assert result.trace["diameter"] == 4.0

    def test_reducer_uses_mean_diameter(self) -> None:
        """Test that a 1X2 reducer weighs 1.5 ** 1.5."""
        result = compute_weight("valve", {"size": "1X2"})
        assert result.weight == pytest.approx(1.8371, abs=1e-4)
        assert result.basis is CalculationBasis.dimension
        assert result.trace["average_diameter"] == 1.5
        assert result.trace["diameter1"] == 1.0
        assert result.trace["diameter2"] == 2.0

    def test_size_key_is_case_insensitive(self) -> None:
        assert compute_weight("fitting", {"SIZE": "4"}).weight == pytest.approx(8.0)

    def test_larger_sizes_weigh_more(self) -> None:
        weights = [compute_weight("flange", {"size": s}).weight for s in ["1/2", "1", "2", "4", "8"]]
        assert weights == sorted(weights)

    def test_deterministic(self) -> None:
        first = compute_weight("valve", {"size": "3X2"})
        second = compute_weight("valve", {"size": "3X2"})
        assert first == second


class TestBaselineWeights:
    """Test fallback to the baseline weight."""

    @pytest.mark.parametrize(
        ("identity_key", "reason"),
        [
            ({}, "no_size_field"),
            (None, "no_size_field"),
            ({"size": ""}, "empty_size"),
            ({"size": None}, "empty_size"),
            ({"size": "NOSIZE"}, "no_size"),
        ],
    )
    def test_no_usable_size(self, identity_key: dict | None, reason: str) -> None:
        result = compute_weight("support", identity_key)
        assert result.weight == 1.0
        assert result.basis is CalculationBasis.fixed
        assert result.used_fallback
        assert result.trace["reason"] == reason
        assert result.warning is None

    def test_unparsable_size_warns(self) -> None:
        """Test that garbage sizes use the baseline and carry a warning."""
        result = compute_weight("valve", {"size": "two inch"})
        assert result.weight == 1.0
        assert result.basis is CalculationBasis.fixed
        assert result.warning is not None
        assert "two inch" in result.warning
        assert result.trace["reason"] == "unparsable_size"


class TestLinearWeights:
    """Test the linear-run rule."""

    def test_length_dominates(self) -> None:
        """Test that threaded pipe uses diameter * length * factor."""
        result = compute_weight("threaded_pipe", {"size": "2", "linear_feet": 10})
        assert result.weight == pytest.approx(2.0)
        assert result.basis is CalculationBasis.linear_length
        assert result.trace["linear_feet"] == 10.0
        assert result.trace["length_factor"] == 0.1

    def test_length_key_is_case_insensitive(self) -> None:
        result = compute_weight("threaded_pipe", {"SIZE": "1", "LINEAR_FEET": "25"})
        assert result.weight == pytest.approx(2.5)

    def test_without_length_uses_diameter_rule(self) -> None:
        result = compute_weight("threaded_pipe", {"size": "4"})
        assert result.weight == pytest.approx(8.0)
        assert result.basis is CalculationBasis.dimension

    @pytest.mark.parametrize("length", [0, -5, "lots"])
    def test_invalid_length_warns_and_uses_diameter(self, length: object) -> None:
        result = compute_weight("threaded_pipe", {"size": "4", "linear_feet": length})
        assert result.weight == pytest.approx(8.0)
        assert result.basis is CalculationBasis.dimension
        assert result.warning is not None

    def test_non_linear_category_ignores_length(self) -> None:
        result = compute_weight("valve", {"size": "2", "linear_feet": 100})
        assert result.weight == pytest.approx(2**1.5)

    def test_category_name_is_normalized(self) -> None:
        result = compute_weight("Threaded Pipe", {"size": "2", "linear_feet": 10})
        assert result.basis is CalculationBasis.linear_length

    def test_aggregate_pipe_reads_attributes(self) -> None:
        """Test that aggregate pipe takes size and footage from attributes."""
        result = compute_weight(
            "pipe",
            {"pipe_id": "P-100"},
            {"size": "4", "total_linear_feet": 100},
        )
        assert result.weight == pytest.approx(40.0)
        assert result.basis is CalculationBasis.linear_length


class TestPolicy:
    """Test WeightPolicy configuration."""

    def test_from_config(self) -> None:
        policy = WeightPolicy.from_config(
            ManhourConfig(
                baseline_weight=0.5,
                length_factor=0.2,
                linear_categories=["Tubing"],
                conservation_tolerance_per_component=0.05,
            )
        )
        assert policy.baseline_weight == 0.5
        assert policy.conservation_tolerance_per_component == 0.05
        assert policy.is_linear("tubing")
        assert not policy.is_linear("threaded_pipe")
        assert compute_weight("tubing", {"size": "1", "linear_feet": 10}, policy=policy).weight == pytest.approx(2.0)
        assert compute_weight("valve", {}, policy=policy).weight == 0.5

    def test_default_policy(self) -> None:
        assert DEFAULT_POLICY.baseline_weight == 1.0
        assert DEFAULT_POLICY.size_exponent == 1.5
        assert DEFAULT_POLICY.length_factor == 0.1


def test_effective_identity_key_leaves_plain_components_alone() -> None:
    key = {"size": "2"}
    assert effective_identity_key(key, {"size": "8"}) == {"size": "2"}
