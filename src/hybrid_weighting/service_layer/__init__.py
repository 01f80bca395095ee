"""Service layer - orchestrates the weighting pipeline for one query at a time."""

from .weighting_service import WeightingService


__all__ = [
    "WeightingService",
]
