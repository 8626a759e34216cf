"""Helix track parameters, propagation Jacobians, surface intersections and material effects."""

__version__ = "0.1.0"

__all__ = [
    "fields",
    "helix",
    "intersections",
    "jacobians",
    "lcio",
    "materials",
    "propagation",
    "surfaces",
    "track",
]