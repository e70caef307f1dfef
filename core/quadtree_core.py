# core/quadtree_core.py
import heapq
import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .errors import NoMoreSplittableRegions
from .region_stats import Point, RegionStats

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 100


@dataclass(frozen=True)
class Node:
    top_left: Point
    bottom_right: Point
    # indices of the top-left, top-right, bottom-left and bottom-right children
    children: Optional[Tuple[int, int, int, int]] = None

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def height(self) -> int:
        return self.bottom_right[0] - self.top_left[0] + 1

    @property
    def width(self) -> int:
        return self.bottom_right[1] - self.top_left[1] + 1

    def can_split(self) -> bool:
        return self.height > 1 and self.width > 1

    def split(self) -> Tuple["Node", "Node", "Node", "Node"]:
        """Four leaf quadrants; odd dimensions give the extra row/col to the top/left half."""
        if not self.can_split():
            raise ValueError(f"cannot split {self.height}x{self.width} region")
        top, left = self.top_left
        bottom, right = self.bottom_right
        mid_row = (top + bottom) // 2
        mid_col = (left + right) // 2
        return (
            Node((top, left), (mid_row, mid_col)),
            Node((top, mid_col + 1), (mid_row, right)),
            Node((mid_row + 1, left), (bottom, mid_col)),
            Node((mid_row + 1, mid_col + 1), (bottom, right)),
        )


class NodeArena:
    """Append-only, index-addressed store of quadtree nodes."""

    def __init__(self):
        self._nodes: List[Node] = []

    def append(self, node: Node) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def mark_internal(self, index: int, children: Tuple[int, int, int, int]) -> None:
        node = self._nodes[index]
        if not node.is_leaf:
            raise ValueError(f"node {index} is already internal")
        self._nodes[index] = replace(node, children=children)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def leaves(self) -> Iterator[Node]:
        return (n for n in self._nodes if n.is_leaf)

    def leaf_count(self) -> int:
        return sum(1 for _ in self.leaves())

    def internal_count(self) -> int:
        return len(self._nodes) - self.leaf_count()


class RefinementEngine:
    """
    Greedy best-first quadtree refinement.

    Holds the arena and a max-priority queue of splittable leaves keyed by
    their variance score. Each `step()` splits the leaf with the highest
    score. Equal scores are resolved by arena index, lowest first.
    """

    def __init__(self, stats: RegionStats):
        self.stats = stats
        self.arena = NodeArena()
        self._heap: List[Tuple[int, int]] = []
        self._steps = 0
        top_left, bottom_right = stats.full_extent
        root = Node(top_left, bottom_right)
        self.root = self.arena.append(root)
        if root.can_split():
            self._push(self.root, self._score(root))

    @classmethod
    def from_grid(cls, grid) -> "RefinementEngine":
        return cls(RegionStats(grid))

    @property
    def steps_taken(self) -> int:
        return self._steps

    @property
    def pending(self) -> int:
        return len(self._heap)

    def _score(self, node: Node) -> int:
        return self.stats.variance_score(node.top_left, node.bottom_right)

    def _push(self, index: int, score: int) -> None:
        # heapq is a min-heap; negate for max score, index breaks ties
        heapq.heappush(self._heap, (-score, index))

    def step(self) -> int:
        """Split the worst leaf. Returns the index of the node that was split."""
        if not self._heap:
            raise NoMoreSplittableRegions(self._steps)

        neg_score, index = self._heap[0]
        node = self.arena[index]
        children = node.split()
        scores = [self._score(c) for c in children]

        heapq.heappop(self._heap)
        indices = tuple(self.arena.append(c) for c in children)
        self.arena.mark_internal(index, indices)
        for child_index, child, score in zip(indices, children, scores):
            if child.can_split():
                self._push(child_index, score)
        self._steps += 1

        logger.debug("step %d: split node %d %s-%s (score %d) into %s",
                     self._steps, index, node.top_left, node.bottom_right, -neg_score, indices)
        return index

    def refine(self, iterations: int, progress: Optional[Callable[[int], None]] = None,
               strict: bool = False) -> int:
        """
        Run up to `iterations` steps and return how many completed.

        Running out of splittable regions stops early; with `strict` the
        NoMoreSplittableRegions error is re-raised instead.
        """
        done = 0
        for _ in range(iterations):
            try:
                self.step()
            except NoMoreSplittableRegions:
                logger.info("image fully subdivided after %d steps", self._steps)
                if strict:
                    raise
                break
            done += 1
            if progress is not None:
                progress(done)
        return done

    def render(self, outline: Optional[Sequence[int]] = None,
               alpha: Optional[int] = None) -> np.ndarray:
        return render_arena(self.arena, self.stats, self.root, outline=outline, alpha=alpha)


# ---------------- render ----------------
def _paint_leaf(node: Node, canvas: np.ndarray, stats: RegionStats,
                outline: Optional[np.ndarray]):
    top, left = node.top_left
    bottom, right = node.bottom_right
    channels = stats.channels
    color = np.clip(stats.mean(node.top_left, node.bottom_right), 0, 255)
    canvas[top:bottom + 1, left:right + 1, :channels] = color
    if outline is None:
        return
    canvas[top, left:right + 1, :channels] = outline
    canvas[bottom, left:right + 1, :channels] = outline
    canvas[top:bottom + 1, left, :channels] = outline
    canvas[top:bottom + 1, right, :channels] = outline


def _render_node(arena: NodeArena, index: int, canvas: np.ndarray, stats: RegionStats,
                 outline: Optional[np.ndarray]):
    node = arena[index]
    if node.is_leaf:
        _paint_leaf(node, canvas, stats, outline)
        return
    for child in node.children:
        _render_node(arena, child, canvas, stats, outline)


def render_arena(arena: NodeArena, stats: RegionStats, root: int = 0,
                 outline: Optional[Sequence[int]] = None,
                 alpha: Optional[int] = None) -> np.ndarray:
    """
    Rasterize the current leaves of `arena`.

    Each leaf is filled with its mean color. If `outline` is given the leaf's
    border pixels are painted with it. With `alpha` the result gets an extra
    channel holding that constant value.
    """
    channels = stats.channels
    depth = channels if alpha is None else channels + 1
    canvas = np.zeros((stats.height, stats.width, depth), dtype=np.uint8)
    if alpha is not None:
        if not 0 <= alpha <= 255:
            raise ValueError(f"alpha must be in 0..255, got {alpha}")
        canvas[..., channels] = alpha

    outline_arr = None
    if outline is not None:
        if len(outline) != channels:
            raise ValueError(f"outline has {len(outline)} channels, image has {channels}")
        outline_arr = np.clip(np.asarray(outline, dtype=np.int64), 0, 255)

    _render_node(arena, root, canvas, stats, outline_arr)
    return canvas
