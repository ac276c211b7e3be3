import math
from typing import List, Optional, Sequence, Tuple

import torch

from .tours.base import UNREACHABLE, DistanceMap, Tour
from .tours.genome import Candidate


def tour_length(dist_map: DistanceMap, tour: Sequence[int]) -> float:
    """Cyclic length of ``tour``; ``UNREACHABLE`` if any leg is missing."""
    dist = 0.0
    prev = tour[-1]
    for city in tour:
        cost = dist_map.cost(prev, city)
        if cost is None:
            return UNREACHABLE
        dist += cost
        prev = city
    return float(dist)


def tour_lengths(dist_map: DistanceMap, tours: Sequence[Tour]) -> List[float]:
    if not tours:
        return []
    dist = dist_map.tensor
    idx = torch.tensor(tours, dtype=torch.long)
    # Each row pairs tour[i-1] -> tour[i], including the closing leg.
    prev = idx.roll(1, dims=1)
    return dist[prev, idx].sum(dim=1).tolist()


def score(candidates: Sequence[Candidate], dist_map: DistanceMap) -> None:
    pending = [c for c in candidates if c.fitness is None]
    lengths = tour_lengths(dist_map, [c.cities for c in pending])
    for cand, length in zip(pending, lengths):
        cand.fitness = length


def sort_key(candidate: Candidate) -> Tuple[float, Tuple[int, ...]]:
    return candidate.fitness, tuple(candidate.cities)


def rank(candidates: List[Candidate], dist_map: DistanceMap) -> None:
    """Score and sort in place, best first; ties fall back to the city sequence."""
    score(candidates, dist_map)
    candidates.sort(key=sort_key)


def dedup_sorted(candidates: Sequence[Candidate]) -> List[Candidate]:
    out: List[Candidate] = []
    for cand in candidates:
        if out and out[-1].cities == cand.cities:
            continue
        out.append(cand)
    return out


def gap(length: float, optimum: Optional[float]) -> float:
    if optimum is None or math.isclose(optimum, 0.0):
        return float("inf")
    return (length - optimum) / optimum
