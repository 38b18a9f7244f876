"""Unit tests for selector.py module."""

import math

import numpy as np
import pytest

from npc_saliency import selector as selector_module
from npc_saliency.config import AttentionConfig, WeightMode
from npc_saliency.cues import CueSet
from npc_saliency.scene import Camera, Population, SalientObject, Viewpoint
from npc_saliency.scoring import compute_score
from npc_saliency.selector import (
    NO_TARGET_SCORE,
    AttentionSelector,
    SaliencyResult,
    select_most_salient,
)
from npc_saliency.weights import WeightPolicy

FIXED_QUARTER = AttentionConfig(
    weight_mode=WeightMode.FIXED,
    use_angular_velocity=False,
    weight_motion=0.25,
    weight_proximity=0.25,
    weight_color=0.25,
    weight_luminance=0.25,
)


def object_with_cues(name, **cues):
    obj = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0), name=name)
    obj.cues = CueSet(**cues)
    return obj


class RecordingSink:
    def __init__(self):
        self.frames = []

    def write_frame(self, frame, objects, best_id, weights):
        self.frames.append((frame, [obj.object_id for obj in objects], best_id, weights))


class RecordingActuator:
    def __init__(self):
        self.positions = []

    def look_at(self, position):
        self.positions.append(position)


@pytest.fixture
def camera():
    return Camera(position=(0.0, 0.0, 0.0), background_color=(0.5, 0.5, 0.5))


class TestSelectMostSalient:
    """Test the scoring pass and arg-max selection."""

    def test_equal_scores_first_enumerated_wins(self):
        """Motion-only and color-only objects tie at 0.225; the first one wins."""
        a = object_with_cues("A", motion=0.9)
        b = object_with_cues("B", color_contrast=0.9)
        selection = select_most_salient([a, b], WeightPolicy(FIXED_QUARTER), FIXED_QUARTER)
        assert selection.scores[a.object_id] == pytest.approx(0.225)
        assert selection.scores[b.object_id] == pytest.approx(0.225)
        assert selection.best is a

        reversed_selection = select_most_salient([b, a], WeightPolicy(FIXED_QUARTER), FIXED_QUARTER)
        assert reversed_selection.best is b

    def test_adaptive_scores_equal_motion(self):
        """Only motion varies, so adaptive scores reproduce the motion values."""
        config = AttentionConfig(weight_mode=WeightMode.ADAPTIVE)
        objs = [
            object_with_cues(
                f"m{value}",
                motion=value,
                angular_velocity=0.3,
                proximity=0.3,
                color_contrast=0.3,
                luminance_contrast=0.3,
            )
            for value in (0.1, 0.5, 0.9)
        ]
        selection = select_most_salient(objs, WeightPolicy(config), config)
        assert selection.weights.motion == pytest.approx(1.0)
        assert selection.weights.color_contrast == 0.0
        for obj in objs:
            assert selection.scores[obj.object_id] == pytest.approx(obj.cues.motion)
        assert selection.best is objs[2]

    def test_empty_candidates(self):
        selection = select_most_salient([], WeightPolicy(FIXED_QUARTER), FIXED_QUARTER)
        assert selection.best is None
        assert selection.best_score == NO_TARGET_SCORE
        assert selection.scores == {}

    def test_zero_score_still_selected(self):
        """Any eligible object beats the -1 sentinel, even with score 0."""
        obj = object_with_cues("dull")
        selection = select_most_salient([obj], WeightPolicy(FIXED_QUARTER), FIXED_QUARTER)
        assert selection.best is obj
        assert selection.best_score == 0.0

    def test_repeated_selection_is_deterministic(self):
        objs = [object_with_cues(f"o{i}", motion=0.5, proximity=0.2) for i in range(4)]
        policy = WeightPolicy(FIXED_QUARTER)
        first = select_most_salient(objs, policy, FIXED_QUARTER)
        second = select_most_salient(objs, policy, FIXED_QUARTER)
        assert first.best is second.best is objs[0]

    def test_average_convention_same_winner(self):
        averaged = AttentionConfig(
            weight_mode=WeightMode.FIXED, use_angular_velocity=False, average_fixed_scores=True
        )
        objs = [object_with_cues("low", motion=0.2), object_with_cues("high", proximity=0.7)]
        plain = select_most_salient(objs, WeightPolicy(FIXED_QUARTER), FIXED_QUARTER)
        scaled = select_most_salient(objs, WeightPolicy(averaged), averaged)
        assert plain.best is scaled.best is objs[1]
        assert scaled.best_score == pytest.approx(0.2 * 0.7 / 4)


class TestAttentionSelectorStep:
    """Test the full per-frame pipeline."""

    def test_requires_population(self):
        with pytest.raises(ValueError, match="requires a population"):
            AttentionSelector(None)

    def test_empty_population(self, camera):
        selector = AttentionSelector(Population(), camera=camera)
        result = selector.step(1 / 30)
        assert result == SaliencyResult(object_id=None, score=NO_TARGET_SCORE, frame=1)
        assert not result.has_target
        assert selector.get_current_target() == (None, None, NO_TARGET_SCORE)

    def test_out_of_range_object_excluded(self, camera):
        """The far object has the higher raw score but lies beyond attention_range."""
        config = AttentionConfig(weight_mode=WeightMode.FIXED, attention_range=50.0)
        near = SalientObject(position=(0.0, 0.0, 5.0), base_color=(0.5, 0.5, 0.5), name="near")
        far = SalientObject(position=(0.0, 0.0, 60.0), base_color=(1.0, 1.0, 1.0), name="far")
        selector = AttentionSelector(Population([near, far]), config=config, camera=camera)

        selector.step(0.1)
        far.move_to((5.0, 0.0, 60.0))
        result = selector.step(0.1)

        far_raw = compute_score(far.cues, selector.last_weights, config.active_cues)
        assert far_raw > selector.last_scores[near.object_id]
        assert far.object_id not in selector.last_scores
        assert result.object_id == near.object_id

    def test_zero_delta_time_is_finite(self, camera):
        obj = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0))
        selector = AttentionSelector(Population([obj]), camera=camera)
        selector.step(0.0)
        obj.move_to((1.0, 0.0, 5.0))
        result = selector.step(0.0)
        assert math.isfinite(obj.cues.motion)
        assert 0.0 <= obj.cues.motion <= 1.0
        assert math.isfinite(result.score)

    def test_moving_object_wins(self, camera):
        config = AttentionConfig(weight_mode=WeightMode.FIXED)
        still = SalientObject(position=(-1.0, 0.0, 5.0), base_color=(0.6, 0.6, 0.6), name="still")
        mover = SalientObject(position=(1.0, 0.0, 5.0), base_color=(0.6, 0.6, 0.6), name="mover")
        selector = AttentionSelector(Population([still, mover]), config=config, camera=camera)
        selector.step(1 / 30)
        mover.move_to((1.5, 0.0, 5.0))
        result = selector.step(1 / 30)
        assert result.object_id == mover.object_id
        assert result.frame == 2
        np.testing.assert_array_equal(result.position, [1.5, 0.0, 5.0])

    def test_no_camera_no_eye_means_no_target(self):
        obj = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0))
        selector = AttentionSelector(Population([obj]))
        result = selector.step(1 / 30)
        assert not result.has_target
        assert obj.cues.proximity == 0.0

    def test_explicit_eye_overrides_camera(self, camera):
        obj = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0))
        eye = Viewpoint(position=(0.0, 0.0, 4.0))
        config = AttentionConfig(attention_range=2.0)
        selector = AttentionSelector(Population([obj]), config=config, camera=camera, eye=eye)
        assert selector.step(1 / 30).object_id == obj.object_id
        selector.eye = None
        assert not selector.step(1 / 30).has_target

    def test_stale_handle_resolves_to_none(self, camera):
        obj = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0))
        population = Population([obj])
        selector = AttentionSelector(population, camera=camera)
        selector.step(1 / 30)
        target, position, score = selector.get_current_target()
        assert target is obj
        np.testing.assert_array_equal(position, obj.position)
        assert score == selector.result.score

        population.remove(obj.object_id)
        assert selector.get_current_target() == (None, None, NO_TARGET_SCORE)

    def test_actuator_and_sink_receive_frame(self, camera):
        obj = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0))
        hidden = SalientObject(position=(0.0, 0.0, -5.0), base_color=(1.0, 0.0, 0.0))
        sink = RecordingSink()
        actuator = RecordingActuator()
        selector = AttentionSelector(
            Population([obj, hidden]), camera=camera, sink=sink, actuator=actuator
        )
        selector.step(1 / 30)

        frame, logged_ids, best_id, weights = sink.frames[0]
        assert frame == 1
        assert logged_ids == [obj.object_id, hidden.object_id]
        assert best_id == obj.object_id
        assert weights == selector.last_weights
        np.testing.assert_array_equal(actuator.positions[0], obj.position)

    def test_actuator_told_when_no_target(self, camera):
        actuator = RecordingActuator()
        selector = AttentionSelector(Population(), camera=camera, actuator=actuator)
        selector.step(1 / 30)
        assert actuator.positions == [None]

    def test_failing_object_is_skipped(self, camera, monkeypatch):
        good = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0), name="good")
        broken = SalientObject(position=(0.0, 0.0, 6.0), base_color=(1.0, 1.0, 1.0), name="broken")
        original = selector_module.extract_cues

        def flaky_extract(obj, *args, **kwargs):
            if obj.name == "broken":
                raise ValueError("corrupt transform")
            return original(obj, *args, **kwargs)

        monkeypatch.setattr(selector_module, "extract_cues", flaky_extract)
        selector = AttentionSelector(Population([broken, good]), camera=camera)
        result = selector.step(1 / 30)
        assert result.object_id == good.object_id
        assert broken.object_id not in selector.last_scores

    def test_result_replaced_every_frame(self, camera):
        obj = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0))
        population = Population([obj])
        selector = AttentionSelector(population, camera=camera)
        first = selector.step(1 / 30)
        obj.move_to((0.0, 0.0, -5.0))
        second = selector.step(1 / 30)
        assert first.has_target
        assert not second.has_target
        assert selector.result is second

    def test_sink_exception_does_not_abort_frame(self, camera):
        class BrokenSink:
            def write_frame(self, frame, objects, best_id, weights):
                raise RuntimeError("telemetry backend down")

        obj = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0))
        actuator = RecordingActuator()
        selector = AttentionSelector(Population([obj]), camera=camera, sink=BrokenSink(), actuator=actuator)
        first = selector.step(1 / 30)
        second = selector.step(1 / 30)
        assert first.object_id == second.object_id == obj.object_id
        assert selector.frame == 2
        assert len(actuator.positions) == 2

    def test_oracle_attribute_error_is_isolated(self, camera):
        """An oracle tripping over one object leaves the others scorable."""
        good = SalientObject(position=(0.0, 0.0, 5.0), base_color=(1.0, 0.0, 0.0), name="good")
        broken = SalientObject(position=(0.0, 0.0, 6.0), base_color=(1.0, 1.0, 1.0), name="broken")

        class PartialOracle:
            def is_visible(self, obj, viewpoint):
                if obj is broken:
                    raise AttributeError("'NoneType' object has no attribute 'bounds'")
                return True

            def frustum_contains(self, bounds):
                return True

        config = AttentionConfig(visibility_mode="raycast")
        selector = AttentionSelector(Population([broken, good]), config=config, camera=camera, oracle=PartialOracle())
        result = selector.step(1 / 30)
        assert result.object_id == good.object_id
        assert broken.object_id not in selector.last_scores


class TestSaliencyResult:
    """Test result value semantics."""

    def test_targeted_results_compare_equal(self):
        first = SaliencyResult(object_id=3, score=0.5, frame=2, position=np.array([1.0, 2.0, 3.0]))
        second = SaliencyResult(object_id=3, score=0.5, frame=2, position=np.array([1.0, 2.0, 3.0]))
        assert first == second

    def test_position_not_part_of_equality(self):
        first = SaliencyResult(object_id=3, score=0.5, frame=2, position=np.zeros(3))
        second = SaliencyResult(object_id=3, score=0.5, frame=2, position=np.ones(3))
        assert first == second
        assert first != SaliencyResult(object_id=4, score=0.5, frame=2, position=np.zeros(3))

    def test_rerun_yields_identical_result(self, camera):
        config = AttentionConfig(weight_mode=WeightMode.FIXED)

        def run():
            objs = [
                SalientObject(position=(-1.0, 0.0, 5.0), base_color=(0.2, 0.2, 0.2), name="dim"),
                SalientObject(position=(1.0, 0.0, 5.0), base_color=(1.0, 1.0, 1.0), name="bright"),
            ]
            selector = AttentionSelector(Population(objs), config=config, camera=camera)
            result = selector.step(1 / 30)
            return result, objs.index(selector.population.get(result.object_id))

        (first, first_index), (second, second_index) = run(), run()
        assert first_index == second_index == 1
        assert first.score == second.score
        assert first.frame == second.frame
        np.testing.assert_array_equal(first.position, second.position)
