import random
from dataclasses import dataclass
from typing import List, Sequence

from .evaluation import rank
from .tours.base import DistanceMap
from .tours.genome import Candidate


@dataclass
class EvolutionConfig:
    population_size: int = 50
    generations: int = 100
    mutation_rate: float = 2 / 3
    random_seed: int = 123

    def validate(self) -> None:
        if self.population_size // 2 < 2:
            raise ValueError(
                f"population_size={self.population_size} leaves a breeding group of "
                f"{self.population_size // 2}; at least 2 parents are required (population_size >= 4)"
            )
        if self.generations < 1:
            raise ValueError("generations must be >= 1")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError("mutation_rate must be in [0, 1]")


def fresh_group(rng: random.Random, size: int, num_cities: int) -> List[Candidate]:
    return [Candidate.random(rng, num_cities) for _ in range(size)]


def breed_from_pop(breeding_group: Sequence[Candidate], rng: random.Random) -> Candidate:
    if len(breeding_group) < 2:
        raise ValueError("breeding needs at least two parents")
    id1 = rng.randrange(len(breeding_group))
    while True:
        id2 = rng.randrange(len(breeding_group))
        if id1 != id2:
            return breeding_group[id1].breed_with(breeding_group[id2], rng)


class EvolutionarySearch:
    """Selection, breeding and mutation over one worker's sub-population."""

    def __init__(
        self,
        config: EvolutionConfig,
        dist_map: DistanceMap,
        population: List[Candidate],
        rng: random.Random,
    ):
        self.cfg = config
        self.dist_map = dist_map
        self.rng = rng
        self.population = population
        self.pop_size = len(population)
        self.breed_group_size = self.pop_size // 2
        if self.breed_group_size < 2:
            raise ValueError(
                f"sub-population of {self.pop_size} gives a breeding group of "
                f"{self.breed_group_size}; need at least 2"
            )

    def step(self) -> None:
        rank(self.population, self.dist_map)
        del self.population[self.breed_group_size :]
        breeding_group = self.population[:]
        offspring: List[Candidate] = []
        while len(self.population) + len(offspring) < self.pop_size:
            offspring.append(breed_from_pop(breeding_group, self.rng))
        for child in offspring:
            if self.rng.random() < self.cfg.mutation_rate:
                child.mutate(self.rng)
            self.population.append(child)

    def run(self, generations: int = None) -> List[Candidate]:
        if generations is None:
            generations = self.cfg.generations
        for _ in range(generations):
            self.step()
        return self.population

    def best(self) -> Candidate:
        rank(self.population, self.dist_map)
        return self.population[0]
