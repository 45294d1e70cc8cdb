"""
fabci.reporting.generic
=======================

A reporter over the audit ledger: raw events, namespace x kind counts and
the recorded intervals as a Polars frame.

Examples
--------
>>> from fabci.core.ledger import Ledger, create_test_connection
>>> from fabci.reporting.generic import LedgerReporter
>>> L = Ledger(create_test_connection("duckdb"), "test")
>>> rep = LedgerReporter(L)
>>> rep.unique_entities()
[]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import ibis
import polars as pl

from fabci.core.names import Namespace
from fabci.runtime.runners import DIRECT_TAG, FAB_TAG

if TYPE_CHECKING:
    from fabci.core.ledger import Ledger

INTERVAL_FRAME_SCHEMA = {
    "batch_id": pl.Utf8,
    "entity": pl.Utf8,
    "lower": pl.Float64,
    "upper": pl.Float64,
    "direct_lower": pl.Float64,
    "direct_upper": pl.Float64,
    "width": pl.Float64,
    "direct_width": pl.Float64,
    "method": pl.Utf8,
}


@dataclass
class LedgerReporter:
    """
    Read-only views of a `Ledger`.
    """

    ledger: "Ledger"

    def ledger_table(self) -> Any:
        """Return the underlying ledger table as ibis expression."""
        return self.ledger.table

    def _distinct(self, column: str) -> List[str]:
        table = self.ledger.table
        values = table.select(table[column]).distinct().execute()[column]
        return sorted(v for v in values if v is not None)

    def unique_entities(self) -> List[str]:
        """List all areas with at least one event."""
        return self._distinct("entity")

    def unique_namespaces(self) -> List[str]:
        return self._distinct("namespace")

    def unique_batches(self) -> List[str]:
        return self._distinct("batch_id")

    def namespace_kind_counts(self) -> Any:
        """
        Return counts of events grouped by namespace and kind.

        Returns
        -------
        ibis.Table
            Table with namespace, kind, and count columns
        """
        table = self.ledger.table
        return (
            table.group_by([table.namespace, table.kind])
            .aggregate(count=ibis._.count())
            .order_by(["namespace", "kind"])
        )

    def interval_frame(self, batch_id: Optional[str] = None) -> pl.DataFrame:
        """
        Recorded FAB intervals joined with their direct counterparts.

        Args:
            batch_id: Restrict to one batch

        Returns:
            One row per (batch, area), ordered by batch and area
        """
        table = self.ledger.table
        query = table.filter(table.namespace == str(Namespace.INTERVALS))
        if batch_id is not None:
            query = query.filter(query.batch_id == batch_id)
        records = self.ledger.unwrap_results(query.execute())

        rows: Dict[tuple, Dict[str, Any]] = {}
        for rec in records:
            key = (rec["batch_id"], rec["entity"])
            row = rows.setdefault(
                key, {"batch_id": key[0], "entity": key[1]}
            )
            payload = rec["payload"]
            if rec["tag"] == FAB_TAG:
                row.update(
                    lower=payload["lower"],
                    upper=payload["upper"],
                    width=payload["width"],
                    method=payload["method"],
                )
            elif rec["tag"] == DIRECT_TAG:
                row.update(
                    direct_lower=payload["lower"],
                    direct_upper=payload["upper"],
                    direct_width=payload["width"],
                )
        ordered = [
            {name: row.get(name) for name in INTERVAL_FRAME_SCHEMA}
            for _, row in sorted(rows.items())
        ]
        return pl.DataFrame(ordered, schema=INTERVAL_FRAME_SCHEMA)

    def failure_count(self) -> int:
        table = self.ledger.table
        return int(
            table.filter(table.namespace == str(Namespace.FAILURES)).count().execute()
        )

    def summary(self) -> Dict[str, Any]:
        """Areas, failures and mean widths across everything recorded."""
        frame = self.interval_frame()
        n_intervals = frame.height
        if n_intervals:
            ratio = (frame["width"] / frame["direct_width"]).mean()
            mean_width = frame["width"].mean()
            mean_direct = frame["direct_width"].mean()
        else:
            ratio = mean_width = mean_direct = None
        return {
            "n_areas": len(self.unique_entities()),
            "n_intervals": n_intervals,
            "n_failures": self.failure_count(),
            "mean_width": mean_width,
            "mean_direct_width": mean_direct,
            "mean_width_ratio": ratio,
        }
