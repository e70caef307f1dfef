import numpy as np
import pytest

from core.errors import NoMoreSplittableRegions
from core.quadtree_core import DEFAULT_ALPHA, RefinementEngine
from core.recorder import record_refinement


def test_frames_every_interval(noisy_image):
    engine = RefinementEngine.from_grid(noisy_image)
    rec = record_refinement(engine, iterations=10, interval=3)
    # before any step, then after steps 3, 6 and 9
    assert len(rec.frames) == 4
    assert rec.steps_completed == 10
    assert not rec.exhausted
    assert engine.steps_taken == 10


def test_interval_one_snapshots_every_step(noisy_image):
    engine = RefinementEngine.from_grid(noisy_image)
    seen = []
    rec = record_refinement(engine, iterations=5, interval=1, progress=seen.append)
    assert len(rec.frames) == 6
    assert seen == [1, 2, 3, 4, 5]


def test_frames_are_rgba_with_constant_alpha(noisy_image):
    engine = RefinementEngine.from_grid(noisy_image)
    rec = record_refinement(engine, iterations=4, interval=2)
    for frame in rec.frames:
        assert frame.shape == (16, 16, 4)
        assert (frame[..., 3] == DEFAULT_ALPHA).all()


def test_first_frame_is_unrefined(noisy_image):
    engine = RefinementEngine.from_grid(noisy_image)
    rec = record_refinement(engine, iterations=2, interval=1, alpha=255)
    first = rec.frames[0][..., :3]
    assert (first == first[0, 0]).all()
    assert not np.array_equal(rec.frames[0], rec.frames[-1])


def test_outline_is_passed_to_every_frame(noisy_image):
    engine = RefinementEngine.from_grid(noisy_image)
    rec = record_refinement(engine, iterations=2, interval=1, outline=(1, 2, 3))
    for frame in rec.frames:
        assert frame[0, 0, :3].tolist() == [1, 2, 3]


def test_exhaustion_keeps_captured_frames(block_image):
    engine = RefinementEngine.from_grid(block_image)
    rec = record_refinement(engine, iterations=10, interval=2)
    assert rec.steps_completed == 5
    # before any step, after step 2 and after step 4; nothing synthesized at 5
    assert len(rec.frames) == 3
    assert rec.exhausted
    assert isinstance(rec.error, NoMoreSplittableRegions)
    with pytest.raises(NoMoreSplittableRegions):
        rec.raise_for_error()


@pytest.mark.parametrize("interval", [0, -3])
def test_interval_must_be_positive(noisy_image, interval):
    engine = RefinementEngine.from_grid(noisy_image)
    with pytest.raises(ValueError):
        record_refinement(engine, iterations=5, interval=interval)
    assert engine.steps_taken == 0
