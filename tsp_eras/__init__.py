"""
Genetic-algorithm TSP solver: per-worker generation loops merged once per era.
"""

__all__ = [
    "data",
    "evaluation",
    "evolutionary",
    "island",
]
