"""Unit tests for config.py module."""

import numpy as np
import pytest

from npc_saliency.config import (
    CUE_NAMES,
    AttentionConfig,
    ProximityMode,
    VisibilityMode,
    WeightMode,
)


class TestAttentionConfig:
    """Test AttentionConfig defaults and validation."""

    def test_defaults(self):
        config = AttentionConfig()
        assert config.weight_mode is WeightMode.ADAPTIVE
        assert config.visibility_mode is VisibilityMode.FRUSTUM
        assert config.proximity_mode is ProximityMode.SIZE_OVER_DISTANCE
        assert config.active_cues == CUE_NAMES
        assert config.cue_count == 5
        np.testing.assert_allclose(config.background, [0.5, 0.5, 0.5])

    def test_string_modes_are_coerced(self):
        config = AttentionConfig(weight_mode="fixed", visibility_mode="raycast", proximity_mode="inverse_distance")
        assert config.weight_mode is WeightMode.FIXED
        assert config.visibility_mode is VisibilityMode.RAYCAST
        assert config.proximity_mode is ProximityMode.INVERSE_DISTANCE

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            AttentionConfig(weight_mode="learned")

    def test_angular_disabled(self):
        config = AttentionConfig(use_angular_velocity=False)
        assert "angular_velocity" not in config.active_cues
        assert config.cue_count == 4

    def test_weight_out_of_range(self):
        with pytest.raises(ValueError, match="weight_color must lie in"):
            AttentionConfig(weight_color=1.5)

    def test_non_positive_sigma(self):
        with pytest.raises(ValueError, match="sigma_motion must be a positive"):
            AttentionConfig(sigma_motion=0.0)

    def test_percentile_order(self):
        with pytest.raises(ValueError, match="Spread percentiles"):
            AttentionConfig(spread_low_percentile=0.9, spread_high_percentile=0.1)

    def test_bad_background(self):
        with pytest.raises(ValueError, match="RGB triple"):
            AttentionConfig(default_background=(0.1, 0.2))

    def test_frozen(self):
        config = AttentionConfig()
        with pytest.raises(AttributeError):
            config.sigma_motion = 1.0
