import argparse
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tsp_eras.data import CityTable, DataFormatError, load_instance, read_dist_map, read_point_map, write_dist_map
from tsp_eras.evaluation import gap
from tsp_eras.island import EraReport, IslandConfig, IslandModel
from tsp_eras.tours.base import DistanceMap


CONFIG_PATH = Path("default_config.txt")

DIST_MODE = "DistMode"
COORD_MODE = "CoordMode"
TSPLIB_MODE = "TsplibMode"
IN_MODES = (DIST_MODE, COORD_MODE, TSPLIB_MODE)

CONFIG_KEYS = {
    "eras": int,
    "generations": int,
    "population": int,
    "worker_threads": int,
    "seed": int,
    "mutation_rate": float,
    "in_path": str,
    "dist_path": str,
    "in_mode": str,
}


def log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def load_config_file(path: Path) -> Dict[str, object]:
    """Parse ``key: value`` lines. Unknown keys are ignored."""
    values: Dict[str, object] = {}
    for lineno, line in enumerate(path.read_text().splitlines(), start=1):
        if not line.strip():
            continue
        parts = line.split(":", 1)
        if len(parts) != 2:
            raise DataFormatError(path, lineno, "expected 'key: value'")
        key, raw = parts[0].strip(), parts[1].strip()
        conv = CONFIG_KEYS.get(key)
        if conv is None:
            continue
        try:
            values[key] = conv(raw)
        except ValueError:
            raise DataFormatError(path, lineno, f"bad value {raw!r} for {key}") from None
        if key == "in_mode" and raw not in IN_MODES:
            raise DataFormatError(path, lineno, f"in_mode must be one of {', '.join(IN_MODES)}, got {raw!r}")
    return values


def _read_config(args) -> Dict[str, object]:
    if args.config is not None:
        return load_config_file(Path(args.config))
    if CONFIG_PATH.exists():
        log(f"{CONFIG_PATH} found!")
        return load_config_file(CONFIG_PATH)
    log(f"{CONFIG_PATH} NOT found!")
    return {}


def build_config(args, file_values: Dict[str, object]) -> IslandConfig:
    cfg = IslandConfig()
    overrides = {
        "eras": (args.eras, file_values.get("eras")),
        "generations": (args.generations, file_values.get("generations")),
        "population_size": (args.population, file_values.get("population")),
        "worker_threads": (args.workers, file_values.get("worker_threads")),
        "random_seed": (args.seed, file_values.get("seed")),
        "mutation_rate": (args.mutation_rate, file_values.get("mutation_rate")),
    }
    for attr, (cli_value, file_value) in overrides.items():
        if cli_value is not None:
            setattr(cfg, attr, cli_value)
        elif file_value is not None:
            setattr(cfg, attr, file_value)
    cfg.validate()
    return cfg


def _input_mode(args, file_values: Dict[str, object]) -> str:
    if args.coord:
        return COORD_MODE
    if args.tsplib:
        return TSPLIB_MODE
    return file_values.get("in_mode", DIST_MODE)


def load_inputs(
    in_path: Path, mode: str, symmetric: bool = False, noise: float = 0.0, seed: Optional[int] = None
) -> Tuple[CityTable, DistanceMap, Optional[float]]:
    if mode == TSPLIB_MODE:
        inst = load_instance(in_path)
        return inst.cities, inst.dist_map, inst.optimum
    if mode == COORD_MODE:
        cities, points = read_point_map(in_path)
        return cities, DistanceMap.from_points(points, noise=noise, seed=seed), None
    cities, dist_map = read_dist_map(in_path, symmetric=symmetric)
    return cities, dist_map, None


def format_tour(cities: CityTable, tour: List[int]) -> str:
    return " --> ".join(cities.names(tour))


def print_report(report: EraReport) -> None:
    print(f"Best of Era {report.era}/{report.eras} has {report.cost}", flush=True)


def run(args) -> None:
    t0 = time.perf_counter()
    file_values = _read_config(args)
    in_path = args.input_path or file_values.get("in_path")
    if not in_path:
        raise ValueError("no input path given on the command line or in the config file")
    dist_path = args.dist_path or file_values.get("dist_path")
    mode = _input_mode(args, file_values)
    cfg = build_config(args, file_values)
    log(f"config: {cfg}")

    log(f"loading {mode} data from {in_path}")
    cities, dist_map, optimum = load_inputs(
        Path(in_path), mode, symmetric=args.symmetric, noise=args.noise, seed=cfg.random_seed
    )
    if len(cities) == 0:
        raise ValueError(f"no cities found in {in_path}")
    t_load = time.perf_counter()
    log(f"loaded {len(cities)} cities in {t_load - t0:.2f}s")
    if dist_path:
        write_dist_map(cities, dist_map, Path(dist_path))
        log(f"distance table written to {dist_path}")

    model = IslandModel(cfg, dist_map)
    log(f"running {cfg.eras} eras on {cfg.worker_threads} workers")
    final = model.run(on_era=print_report)
    log(f"finished in {time.perf_counter() - t_load:.2f}s")

    print("\n")
    print(format_tour(cities, final.best.cities))
    if optimum is not None:
        print(f"optimum={optimum:.2f} gap={gap(final.cost, optimum):.4f}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tsp-eras",
        description="Genetic algorithm for the TSP with era-synchronised parallel islands",
    )
    parser.add_argument("input_path", nargs="?", help="path of the input txt file")
    parser.add_argument("dist_path", nargs="?", help="writes the resulting distance map to this path (optional)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-c", "--coord", action="store_true", help="parse the input as 'name|x|y' coordinates rather than distances"
    )
    mode.add_argument("--tsplib", action="store_true", help="parse the input as a TSPLIB .tsp file")
    parser.add_argument(
        "--symmetric", action="store_true", help="use the reverse distance when a directed pair is missing"
    )
    parser.add_argument("-w", "--workers", type=int, help="number of worker threads (defaults to cores - 1)")
    parser.add_argument("-e", "--eras", type=int, help="number of eras (globally-synced rounds of breeding)")
    parser.add_argument(
        "-g", "--generations", type=int, help="number of generations (selection rounds per worker per era)"
    )
    parser.add_argument("-p", "--population", type=int, help="population size per worker")
    parser.add_argument("--seed", type=int, help="master random seed")
    parser.add_argument("--mutation-rate", type=float, help="probability of mutating each offspring")
    parser.add_argument("--noise", type=float, default=0.0, help="random scaling noise for coordinate distances")
    parser.add_argument("--config", help=f"config file (defaults to ./{CONFIG_PATH} when present)")
    parser.set_defaults(func=run)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.func(args)
    except (ValueError, OSError) as e:
        parser.exit(2, f"{parser.prog}: error: {e}\n")


if __name__ == "__main__":
    main()
