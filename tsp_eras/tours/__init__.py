from .base import DistanceMap, InvalidTourError, Tour, UNREACHABLE, check_tour
from .genome import Candidate

__all__ = [
    "DistanceMap",
    "InvalidTourError",
    "Tour",
    "UNREACHABLE",
    "check_tour",
    "Candidate",
]
