import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np
import torch


Tour = List[int]

UNREACHABLE = float("inf")


class InvalidTourError(RuntimeError):
    """Raised when a tour is not a permutation of ``range(num_cities)``."""


def check_tour(tour: Sequence[int], num_cities: int) -> None:
    if len(tour) != num_cities:
        raise InvalidTourError(f"tour has {len(tour)} cities, expected {num_cities}")
    seen = set(tour)
    if len(seen) != num_cities:
        raise InvalidTourError("tour visits a city more than once")
    if seen and (min(seen) < 0 or max(seen) >= num_cities):
        raise InvalidTourError(f"tour contains a city outside [0, {num_cities})")


class DistanceMap:
    """
    Read-only travel costs between city ids.

    Costs live in a dense ``n x n`` matrix; pairs that were never given are
    ``inf``. Workers share one instance across threads.
    """

    def __init__(self, matrix: np.ndarray):
        matrix = np.array(matrix, dtype=np.float64)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f"distance matrix must be square, got shape {matrix.shape}")
        if np.isnan(matrix).any():
            raise ValueError("distance matrix contains NaN")
        if (matrix < 0).any():
            raise ValueError("distance matrix contains negative costs")
        matrix.setflags(write=False)
        self._matrix = matrix
        self._tensor = torch.from_numpy(matrix.copy())

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[Tuple[int, int, float]],
        num_cities: int,
        symmetric: bool = False,
    ) -> "DistanceMap":
        mat = np.full((num_cities, num_cities), np.inf)
        for a, b, cost in pairs:
            mat[a, b] = cost
        if symmetric:
            missing = np.isinf(mat)
            mat[missing] = mat.T[missing]
        # Staying put costs nothing unless the table says otherwise.
        diag = np.diagonal(mat).copy()
        diag[np.isinf(diag)] = 0.0
        np.fill_diagonal(mat, diag)
        return cls(mat)

    @classmethod
    def from_points(
        cls, points: np.ndarray, noise: float = 0.0, seed: Optional[int] = None
    ) -> "DistanceMap":
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 2:
            raise ValueError(f"points must have shape (n, 2), got {points.shape}")
        if not 0.0 <= noise < 1.0:
            raise ValueError("noise must be in [0, 1)")
        diff = points[:, None, :] - points[None, :, :]
        mat = np.hypot(diff[..., 0], diff[..., 1])
        if noise:
            rng = np.random.default_rng(seed)
            scale = rng.uniform(1.0 - noise, 1.0 + noise, size=mat.shape)
            # Keep the noisy map symmetric.
            scale = np.triu(scale) + np.triu(scale, 1).T
            mat = mat * scale
        return cls(mat)

    @classmethod
    def from_graph(cls, graph: nx.Graph, node_ids: Dict) -> "DistanceMap":
        n = len(node_ids)
        mat = np.full((n, n), np.inf)
        for u, v, w in graph.edges(data="weight", default=1.0):
            mat[node_ids[u], node_ids[v]] = w
            if not graph.is_directed():
                mat[node_ids[v], node_ids[u]] = w
        return cls(mat)

    def __len__(self) -> int:
        return self._matrix.shape[0]

    @property
    def num_cities(self) -> int:
        return len(self)

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix

    @property
    def tensor(self) -> torch.Tensor:
        return self._tensor

    def cost(self, a: int, b: int) -> Optional[float]:
        c = self._matrix[a, b]
        if math.isinf(c):
            return None
        return float(c)

    def pairs(self) -> Iterable[Tuple[int, int, float]]:
        n = len(self)
        for a in range(n):
            for b in range(n):
                c = self.cost(a, b)
                if c is not None:
                    yield a, b, c
