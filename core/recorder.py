# core/recorder.py
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np

from .errors import NoMoreSplittableRegions
from .quadtree_core import DEFAULT_ALPHA, RefinementEngine

logger = logging.getLogger(__name__)


@dataclass
class Recording:
    frames: List[np.ndarray] = field(default_factory=list)
    steps_completed: int = 0
    error: Optional[NoMoreSplittableRegions] = None

    @property
    def exhausted(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def record_refinement(engine: RefinementEngine, iterations: int, interval: int,
                      outline: Optional[Sequence[int]] = None,
                      alpha: int = DEFAULT_ALPHA,
                      progress: Optional[Callable[[int], None]] = None) -> Recording:
    """
    Drive `engine` for `iterations` steps, snapshotting every `interval` steps.

    The first frame is taken before any step. If the engine runs out of
    splittable regions the frames captured so far are kept and the error is
    stored on the returned Recording.
    """
    if interval < 1:
        raise ValueError(f"snapshot interval must be a positive integer, got {interval}")

    rec = Recording()
    rec.frames.append(engine.render(outline=outline, alpha=alpha))
    for i in range(1, iterations + 1):
        try:
            engine.step()
        except NoMoreSplittableRegions as e:
            logger.warning("stopped after %d of %d steps: %s", rec.steps_completed, iterations, e)
            rec.error = e
            break
        rec.steps_completed = i
        if progress is not None:
            progress(i)
        if i % interval == 0:
            rec.frames.append(engine.render(outline=outline, alpha=alpha))

    logger.info("recorded %d frames over %d steps", len(rec.frames), rec.steps_completed)
    return rec
