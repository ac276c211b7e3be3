import random
from dataclasses import dataclass, field
from typing import List, Optional

from .base import Tour, check_tour


@dataclass
class Candidate:
    """One tour plus its cached length. Equality is by city sequence only."""

    cities: Tour
    fitness: Optional[float] = field(default=None, compare=False)

    def __hash__(self) -> int:
        return hash(tuple(self.cities))

    def __len__(self) -> int:
        return len(self.cities)

    @staticmethod
    def random(rng: random.Random, num_cities: int) -> "Candidate":
        if num_cities < 1:
            raise ValueError("a tour needs at least one city")
        cities = list(range(num_cities))
        rng.shuffle(cities)
        check_tour(cities, num_cities)
        return Candidate(cities=cities)

    def copy(self) -> "Candidate":
        return Candidate(cities=self.cities[:], fitness=self.fitness)

    def swap(self, i: int, j: int) -> None:
        self.cities[i], self.cities[j] = self.cities[j], self.cities[i]
        self.fitness = None

    def mutate(self, rng: "random.Random") -> None:
        n = len(self.cities)
        # Positions are drawn independently; i == j leaves the tour unchanged.
        self.swap(rng.randrange(n), rng.randrange(n))

    def breed_with(
        self,
        other: "Candidate",
        rng: "random.Random",
        offset: Optional[int] = None,
        copy_len: Optional[int] = None,
    ) -> "Candidate":
        n = len(self.cities)
        if len(other.cities) != n:
            raise ValueError(f"parents differ in length ({n} vs {len(other.cities)})")
        if offset is None:
            offset = rng.randrange(n)
        if copy_len is None:
            copy_len = rng.randint(0, n)
        if not 0 <= offset < n:
            raise ValueError(f"offset {offset} outside [0, {n})")
        if not 0 <= copy_len <= n:
            raise ValueError(f"copy_len {copy_len} outside [0, {n}]")

        child: List[int] = [self.cities[(offset + i) % n] for i in range(copy_len)]
        present = set(child)
        for city in other.cities:
            if city not in present:
                child.append(city)
                present.add(city)
        check_tour(child, n)
        return Candidate(cities=child)
