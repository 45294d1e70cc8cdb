"""
fabci.core.names
================

Typed names shared across the package.

- `Namespace`: an Enum for well-known ledger namespaces.
- `AreaId`, `BatchId`: NewType wrappers for clarity.
- Common `Literal` tags for interval methods and ledger events.

Examples
--------
>>> from fabci.core.names import Namespace, AreaId
>>> Namespace.INTERVALS.value
'intervals'
>>> aid = AreaId("county-17"); isinstance(aid, str)
True
"""

from __future__ import annotations
from enum import Enum
from typing import Literal, NewType


class Namespace(str, Enum):
    """Well-known ledger namespaces.

    - OBS: per-area observed statistics
    - PRIOR: linking-model prior parameters
    - INTERVALS: computed FAB and direct intervals
    - FAILURES: per-area errors isolated by the batch runner
    """

    OBS = "obs"
    PRIOR = "prior"
    INTERVALS = "intervals"
    FAILURES = "failures"

    def __str__(self) -> str:
        return self.value


AreaId = NewType("AreaId", str)
BatchId = NewType("BatchId", str)

IntervalMethod = Literal["fab-z", "fab-t", "direct-z", "direct-t"]
FabIntervalTag = Literal["interval:fab"]
DirectIntervalTag = Literal["interval:direct"]
FailureTag = Literal["failure:area"]
