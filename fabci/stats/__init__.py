"""
Statistical methods behind FAB intervals.

1. **Common** (fabci.stats.common):
   Generic, reusable pieces that know nothing about small areas: quantile
   providers, spending functions and the solver for implicit interval
   endpoints.

2. **Schemes** (fabci.stats.schemes):
   Problem-specific engines that compose the generic pieces for a
   particular data shape (area means with known or estimated variance).

Example:
--------
>>> # Generic method (reusable across schemes)
>>> from fabci.stats.common.spending import NormalPriorSpending
>>> s = NormalPriorSpending(prior_mean=0.0, prior_variance=1.0, sampling_variance=1.0)
>>> s(0.0)
0.5

>>> # Scheme-specific application
>>> from fabci.stats.schemes.area_means import ZIntervalEngine
>>> engine = ZIntervalEngine(alpha=0.1)
"""
