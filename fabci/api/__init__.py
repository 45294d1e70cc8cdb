"""
fabci.api - User-Friendly Facade
================================

Plain functions for the common cases, so callers need not assemble
engines, observations and priors themselves.

Examples
--------
>>> from fabci.api import fab_z_interval
>>> ci = fab_z_interval(100.0, 25.0, prior_mean=100.0, prior_variance=1.0)
>>> ci.method
'fab-z'

Unified Interface
-----------------
- `fab_z_interval()`: known sampling variance
- `fab_t_interval()`: estimated sampling variance
- `direct_z_interval()`, `direct_t_interval()`: prior-free baselines
- `fab_intervals()`: a whole Polars frame of areas
"""

from fabci.api.intervals import (
    direct_t_interval,
    direct_z_interval,
    fab_intervals,
    fab_t_interval,
    fab_z_interval,
)

__all__ = [
    "direct_t_interval",
    "direct_z_interval",
    "fab_intervals",
    "fab_t_interval",
    "fab_z_interval",
]
