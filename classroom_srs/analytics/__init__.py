"""
Analytics package exports.
"""

from classroom_srs.analytics.service import compute_stats
from classroom_srs.analytics.types import SrsStats

__all__ = [
    "compute_stats",
    "SrsStats",
]
