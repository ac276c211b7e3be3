import math

from tsp_eras.data import CityTable
from tsp_eras.island import IslandConfig, IslandModel
from tsp_eras.tours.base import DistanceMap


def main():
    # Unit square: sides cost 1, diagonals sqrt(2); the best tour is the perimeter.
    cities = CityTable(["NW", "NE", "SE", "SW"])
    diag = math.sqrt(2.0)
    pairs = [
        (0, 1, 1.0), (1, 2, 1.0), (2, 3, 1.0), (3, 0, 1.0),
        (0, 2, diag), (1, 3, diag),
    ]
    dist_map = DistanceMap.from_pairs(pairs, len(cities), symmetric=True)

    cfg = IslandConfig(
        population_size=8,
        generations=5,
        eras=5,
        worker_threads=2,
    )
    model = IslandModel(cfg, dist_map)
    for era in range(cfg.eras):
        report = model.step()
        print(f"era {report.era}: best={report.cost:.2f} tour={' -> '.join(cities.names(report.best.cities))}")


if __name__ == "__main__":
    main()
