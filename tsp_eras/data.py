from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import tsplib95

from .tours.base import DistanceMap


class DataFormatError(ValueError):
    def __init__(self, path, lineno: int, msg: str):
        super().__init__(f"{path}:{lineno}: {msg}")
        self.path = path
        self.lineno = lineno


class CityTable:
    """Two-way city name <-> id table. The first occurrence of a name fixes its id."""

    def __init__(self, names: Iterable[str] = ()):
        self._ids: Dict[str, int] = {}
        self._names: List[str] = []
        for name in names:
            self.intern(name)

    def intern(self, name: str) -> int:
        cid = self._ids.get(name)
        if cid is None:
            cid = len(self._names)
            self._ids[name] = cid
            self._names.append(name)
        return cid

    def id(self, name: str) -> int:
        return self._ids[name]

    def name(self, cid: int) -> str:
        return self._names[cid]

    def names(self, tour: Sequence[int]) -> List[str]:
        return [self._names[c] for c in tour]

    def __contains__(self, name: str) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._names)


@dataclass
class Instance:
    name: str
    path: Path
    cities: CityTable
    dist_map: DistanceMap
    optimum: Optional[float]


def _records(path: Path) -> Iterator[Tuple[int, List[str]]]:
    with path.open("r") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            fields = [part.strip() for part in line.split("|")]
            if len(fields) != 3:
                raise DataFormatError(path, lineno, f"expected 3 '|'-separated fields, got {len(fields)}")
            yield lineno, fields


def _parse_float(path: Path, lineno: int, text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise DataFormatError(path, lineno, f"could not parse number {text!r}") from None


def read_point_map(path) -> Tuple[CityTable, np.ndarray]:
    """Read ``name|x|y`` lines. A repeated name keeps its id and takes the later point."""
    path = Path(path)
    cities = CityTable()
    points: Dict[int, Tuple[float, float]] = {}
    for lineno, (name, x, y) in _records(path):
        cid = cities.intern(name)
        points[cid] = (_parse_float(path, lineno, x), _parse_float(path, lineno, y))
    coords = np.array([points[cid] for cid in range(len(cities))], dtype=np.float64).reshape(-1, 2)
    return cities, coords


def read_dist_map(path, symmetric: bool = False) -> Tuple[CityTable, DistanceMap]:
    """Read ``name1|name2|distance`` lines."""
    path = Path(path)
    cities = CityTable()
    pairs = []
    for lineno, (a, b, dist) in _records(path):
        cost = _parse_float(path, lineno, dist)
        if cost < 0:
            raise DataFormatError(path, lineno, f"negative distance {cost}")
        pairs.append((cities.intern(a), cities.intern(b), cost))
    return cities, DistanceMap.from_pairs(pairs, len(cities), symmetric=symmetric)


def write_dist_map(cities: CityTable, dist_map: DistanceMap, path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        for a, b, cost in dist_map.pairs():
            f.write(f"{cities.name(a)}\t|{cities.name(b)}\t|{cost!r}\n")


def _solution_candidates(path: Path) -> Iterable[Path]:
    yield path.with_suffix(".opt.tour")
    for ext in (".opt.tour", ".opt", ".tour"):
        yield path.parent / "solutions" / f"{path.stem}{ext}"


def _load_optimum(cities: CityTable, dist_map: DistanceMap, path: Path) -> Optional[float]:
    for candidate in _solution_candidates(path):
        if not candidate.exists():
            continue
        try:
            tour_file = tsplib95.load(candidate)
            nodes = [cities.id(str(n)) for n in tour_file.tours[0]]
        except Exception:
            continue
        dist = 0.0
        for i in range(len(nodes)):
            cost = dist_map.cost(nodes[i - 1], nodes[i])
            if cost is None:
                return None
            dist += cost
        return float(dist)
    return None


def load_instance(path) -> Instance:
    path = Path(path)
    problem = tsplib95.load(path)
    graph = problem.get_graph()
    cities = CityTable(str(n) for n in graph.nodes())
    node_ids = {n: cities.id(str(n)) for n in graph.nodes()}
    dist_map = DistanceMap.from_graph(graph, node_ids)
    optimum = _load_optimum(cities, dist_map, path)
    return Instance(name=problem.name or path.stem, path=path, cities=cities, dist_map=dist_map, optimum=optimum)
