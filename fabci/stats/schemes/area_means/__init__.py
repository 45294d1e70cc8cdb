"""
FAB intervals for small-area means.

Each area contributes one direct estimate; a linking model fit on the
*other* areas supplies a normal prior for its mean (and optionally an
inverse-gamma prior for its sampling variance).

Module Organization
-------------------
- `model`: observation, prior and interval value types
- `z_interval`: known sampling variance
- `t_interval`: estimated sampling variance, optionally pooled
- `simulation`: Monte Carlo coverage at a fixed true mean

Example Usage
-------------
>>> from fabci.stats.schemes.area_means import (
...     AreaObservation, LinkingPrior, ZIntervalEngine)
>>> engine = ZIntervalEngine(alpha=0.05)
>>> ci = engine.interval(AreaObservation.known(100.0, 25.0),
...                      LinkingPrior(prior_mean=100.0, prior_variance=1.0))
>>> ci.method
'fab-z'
"""

from fabci.stats.schemes.area_means.model import (
    AreaObservation,
    ConfidenceInterval,
    LinkingPrior,
)
from fabci.stats.schemes.area_means.t_interval import TIntervalEngine
from fabci.stats.schemes.area_means.z_interval import ZIntervalEngine

__all__ = [
    "AreaObservation",
    "ConfidenceInterval",
    "LinkingPrior",
    "TIntervalEngine",
    "ZIntervalEngine",
]
