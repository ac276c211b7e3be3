import concurrent.futures
import os
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .evaluation import dedup_sorted, rank
from .evolutionary import EvolutionConfig, EvolutionarySearch, fresh_group
from .tours.base import DistanceMap
from .tours.genome import Candidate


def default_worker_threads() -> int:
    return max(1, (os.cpu_count() or 1) - 1)


@dataclass
class IslandConfig(EvolutionConfig):
    eras: int = 100
    worker_threads: int = field(default_factory=default_worker_threads)

    def validate(self) -> None:
        super().validate()
        if self.eras < 1:
            raise ValueError("eras must be >= 1")
        if self.worker_threads < 1:
            raise ValueError("worker_threads must be >= 1")


@dataclass
class EraReport:
    era: int
    eras: int
    best: Candidate
    cost: float

    @property
    def final(self) -> bool:
        return self.era == self.eras


class IslandModel:
    """
    Runs one generation loop per worker each era, then merges the islands.

    Every worker starts an era from its own copy of the merged population and
    its own generator, seeded from the master generator at dispatch time, so a
    run is reproducible for a fixed ``random_seed`` regardless of scheduling.
    """

    def __init__(self, cfg: IslandConfig, dist_map: DistanceMap):
        cfg.validate()
        self.cfg = cfg
        self.dist_map = dist_map
        self.num_cities = len(dist_map)
        self.rng = random.Random(cfg.random_seed)
        self.populations: List[List[Candidate]] = [
            fresh_group(self.rng, cfg.population_size, self.num_cities)
            for _ in range(cfg.worker_threads)
        ]
        self.merged: List[Candidate] = []
        self.history: List[float] = []
        self.era = 0

    def _spawn_rngs(self) -> List[random.Random]:
        return [random.Random(self.rng.getrandbits(64)) for _ in self.populations]

    def _evolve(self, population: List[Candidate], rng: random.Random) -> List[Candidate]:
        search = EvolutionarySearch(self.cfg, self.dist_map, population, rng)
        return search.run()

    def merge(self, populations: List[List[Candidate]]) -> List[Candidate]:
        combined = [cand for pop in populations for cand in pop]
        rank(combined, self.dist_map)
        merged = dedup_sorted(combined)
        del merged[self.cfg.population_size :]
        while len(merged) < self.cfg.population_size:
            merged.append(Candidate.random(self.rng, self.num_cities))
        return merged

    def step(self) -> EraReport:
        if self.era >= self.cfg.eras:
            raise RuntimeError(f"all {self.cfg.eras} eras have already run")
        rngs = self._spawn_rngs()
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.cfg.worker_threads) as ex:
            evolved = list(ex.map(self._evolve, self.populations, rngs))
        self.merged = self.merge(evolved)
        self.era += 1
        best, cost = self.best()
        self.history.append(cost)
        if self.era < self.cfg.eras:
            self.populations = [
                [cand.copy() for cand in self.merged] for _ in range(self.cfg.worker_threads)
            ]
        return EraReport(era=self.era, eras=self.cfg.eras, best=best, cost=cost)

    def run(self, on_era: Optional[Callable[[EraReport], None]] = None) -> EraReport:
        report = None
        while self.era < self.cfg.eras:
            report = self.step()
            if on_era is not None:
                on_era(report)
        return report

    def best(self) -> Tuple[Optional[Candidate], float]:
        if not self.merged:
            return None, float("inf")
        best = self.merged[0]
        return best, best.fitness
