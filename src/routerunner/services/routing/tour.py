"""Nearest-neighbour construction and 2-opt refinement over a distance matrix.

Node indices refer to rows of the matrix. Callers map them back to stop ids;
nothing positional leaves the routing package.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

import numpy as np

IMPROVEMENT_EPSILON = 1e-9


def nearest_neighbor(
    matrix: np.ndarray,
    start: int,
    nodes: Sequence[int],
    *,
    weight: Optional[Callable[[int, int, float], float]] = None,
) -> list[int]:
    """Greedy order over ``nodes`` beginning at ``start``.

    ``start`` is not part of the output unless it is also listed in ``nodes``.
    Ties go to the node listed first. ``weight(current, candidate, distance)``
    may rescale distances for ranking only.
    """
    remaining = list(nodes)
    order: list[int] = []
    current = start
    while remaining:
        best_pos = 0
        best_score = float("inf")
        for pos, candidate in enumerate(remaining):
            distance = float(matrix[current, candidate])
            score = weight(current, candidate, distance) if weight else distance
            if score < best_score:
                best_score = score
                best_pos = pos
        current = remaining.pop(best_pos)
        order.append(current)
    return order


def path_length(matrix: np.ndarray, path: Sequence[int], *, closed: bool = False) -> float:
    if len(path) < 2:
        return 0.0
    total = sum(float(matrix[a, b]) for a, b in zip(path, path[1:]))
    if closed:
        total += float(matrix[path[-1], path[0]])
    return total


def two_opt(matrix: np.ndarray, path: Sequence[int], *, closed: bool = True) -> list[int]:
    """Improve ``path`` by segment reversal until no move shortens it.

    ``path[0]`` stays fixed. With ``closed`` the tour returns to ``path[0]``;
    otherwise the last node is a free end.
    """
    order = list(path)
    n = len(order)
    if n < (4 if closed else 3):
        return order

    improved = True
    while improved:
        improved = False
        for i in range(n - 2):
            for j in range(i + 2, n):
                a, b = order[i], order[i + 1]
                c = order[j]
                if j + 1 < n:
                    e: Optional[int] = order[j + 1]
                elif closed:
                    e = order[0]
                else:
                    e = None
                if closed and e == a:
                    continue
                delta = float(matrix[a, c]) - float(matrix[a, b])
                if e is not None:
                    delta += float(matrix[b, e]) - float(matrix[c, e])
                if delta < -IMPROVEMENT_EPSILON:
                    order[i + 1 : j + 1] = reversed(order[i + 1 : j + 1])
                    improved = True
    return order
