"""
fabci — exact, area-specific confidence intervals assisted by prior information.

Many small-area problems come with a statistical *linking model* that
predicts each area's mean from the other areas. A Bayesian interval built
from that prediction is narrow but only valid on average over the prior;
a direct interval is valid for every area but ignores the prediction.
FAB ("Frequentist, Assisted by Bayes") intervals sit in between: the prior
only decides how the error rate ``alpha`` is *spent* across the two tails,
so coverage stays exactly ``1 - alpha`` for every true value while the
expected width shrinks when the prior is informative.

The package is layered the same way throughout:

- `fabci.stats.common`: generic math (spending functions, quantiles,
  the implicit-endpoint root finder).
- `fabci.stats.schemes.area_means`: the z- and t-interval engines.
- `fabci.runtime` / `fabci.backends` / `fabci.core.ledger`: batch
  execution over many areas, Polars frames and an ibis audit ledger.
- `fabci.api`: plain-function facade.

Example
-------
>>> import fabci
>>> assert hasattr(fabci, "core")
>>> assert hasattr(fabci, "stats")
"""

from fabci.__version__ import __version__
from fabci import core, stats

__all__ = ["__version__", "core", "stats"]
