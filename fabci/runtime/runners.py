"""
fabci.runtime.runners
=====================

Batch execution of FAB intervals over many areas.

The runner owns the engines and the execution strategy; each area is an
independent problem, so one area's failure is recorded next to its id and
never aborts the batch. Results always come back in input order, whether
computed inline or fanned out over a `concurrent.futures` executor.

Examples
--------
>>> from fabci.runtime.runners import AreaRecord, BatchRunner
>>> from fabci.stats.schemes.area_means import AreaObservation, LinkingPrior
>>> runner = BatchRunner()
>>> results = runner.run([
...     AreaRecord("a", AreaObservation.known(100.0, 25.0),
...                LinkingPrior(prior_mean=100.0, prior_variance=1.0)),
...     AreaRecord("b", AreaObservation.known(50.0, 4.0),
...                LinkingPrior.non_informative()),
... ])
>>> [r.area_id for r in results]
['a', 'b']
>>> runner.summary(results)["n_failed"]
0
"""

from __future__ import annotations
import logging
import uuid as uuid_module
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from fabci.core.errors import FabError, InvalidInputError
from fabci.core.ledger import Ledger, LedgerEvent
from fabci.core.names import (
    AreaId,
    DirectIntervalTag,
    FabIntervalTag,
    FailureTag,
    Namespace,
)
from fabci.stats.schemes.area_means.model import (
    AreaObservation,
    ConfidenceInterval,
    LinkingPrior,
)
from fabci.stats.schemes.area_means.t_interval import TIntervalEngine
from fabci.stats.schemes.area_means.z_interval import ZIntervalEngine

LOG = logging.getLogger(__name__)

FAB_TAG: FabIntervalTag = "interval:fab"
DIRECT_TAG: DirectIntervalTag = "interval:direct"
FAILURE_TAG: FailureTag = "failure:area"


@dataclass(frozen=True)
class AreaRecord:
    """One area's inputs."""

    area_id: str
    observation: AreaObservation
    prior: LinkingPrior


@dataclass(frozen=True)
class AreaResult:
    """
    Outcome for one area.

    Exactly one of ``interval`` and ``error_kind`` is set.

    Attributes:
        area_id: Area identifier
        interval: FAB interval, or None on failure
        direct: Direct interval on the same pivot, or None on failure
        error_kind: `FabError.kind` of the failure
        error_message: Human-readable failure message
    """

    area_id: str
    interval: Optional[ConfidenceInterval] = None
    direct: Optional[ConfidenceInterval] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @property
    def width_ratio(self) -> Optional[float]:
        """FAB width over direct width."""
        if self.interval is None or self.direct is None:
            return None
        return self.interval.width / self.direct.width


class BatchRunner:
    """
    Runner computing FAB and direct intervals for a batch of areas.

    Areas with a known sampling variance go to ``z_engine``, the others to
    ``t_engine``. `FabError` raised for one area is isolated into its
    `AreaResult`; any other exception propagates.
    """

    def __init__(
        self,
        *,
        z_engine: Optional[ZIntervalEngine] = None,
        t_engine: Optional[TIntervalEngine] = None,
        ledger: Optional[Ledger] = None,
        executor: Optional[Executor] = None,
    ):
        self.z_engine = z_engine or ZIntervalEngine()
        self.t_engine = t_engine or TIntervalEngine()
        self.ledger = ledger
        self.executor = executor

    def _engine_for(self, observation: AreaObservation):
        if observation.variance_known:
            return self.z_engine
        return self.t_engine

    def run_one(self, record: AreaRecord) -> AreaResult:
        """Compute one area, isolating `FabError` into the result."""
        try:
            if not isinstance(record, AreaRecord):
                raise InvalidInputError(f"expected AreaRecord, got {type(record).__name__}")
            if not record.area_id:
                raise InvalidInputError("area_id must be a non-empty string")
            engine = self._engine_for(record.observation)
            interval = engine.interval(record.observation, record.prior)
            direct = engine.direct_interval(record.observation, record.prior)
        except FabError as exc:
            area_id = getattr(record, "area_id", "") or ""
            LOG.warning("area %r failed: %s: %s", area_id, exc.kind, exc)
            return AreaResult(
                area_id=area_id, error_kind=exc.kind, error_message=str(exc)
            )
        return AreaResult(area_id=record.area_id, interval=interval, direct=direct)

    def run(
        self, records: Iterable[AreaRecord], batch_id: Optional[str] = None
    ) -> List[AreaResult]:
        """
        Compute intervals for every record, in input order.

        Args:
            records: Areas to process
            batch_id: Ledger batch identifier (random when None)

        Returns:
            One `AreaResult` per record
        """
        records = list(records)
        if self.executor is not None:
            results = list(self.executor.map(self.run_one, records))
        else:
            results = [self.run_one(r) for r in records]

        if self.ledger is not None:
            batch_id = batch_id or uuid_module.uuid4().hex
            self.ledger.write_events(self._events(batch_id, records, results))

        summary = self.summary(results)
        LOG.info(
            "batch finished: %d areas, %d failed, mean width ratio %s",
            summary["n_areas"],
            summary["n_failed"],
            summary["mean_width_ratio"],
        )
        return results

    @staticmethod
    def _events(
        batch_id: str, records: List[AreaRecord], results: List[AreaResult]
    ) -> List[LedgerEvent]:
        events: List[LedgerEvent] = []
        for record, result in zip(records, results):
            if not isinstance(record, AreaRecord) or not result.area_id:
                continue
            entity = AreaId(result.area_id)
            events.append(
                LedgerEvent(
                    batch_id=batch_id,
                    namespace=Namespace.OBS,
                    kind="observation",
                    entity=entity,
                    payload_type="AreaObservation",
                    payload=record.observation.payload(),
                )
            )
            events.append(
                LedgerEvent(
                    batch_id=batch_id,
                    namespace=Namespace.PRIOR,
                    kind="prior",
                    entity=entity,
                    payload_type="LinkingPrior",
                    payload=record.prior.payload(),
                )
            )
            if result.ok:
                for tag, ci in (
                    (FAB_TAG, result.interval),
                    (DIRECT_TAG, result.direct),
                ):
                    events.append(
                        LedgerEvent(
                            batch_id=batch_id,
                            namespace=Namespace.INTERVALS,
                            kind="interval",
                            entity=entity,
                            payload_type="ConfidenceInterval",
                            payload=ci.payload(),  # type: ignore[union-attr]
                            tag=tag,
                        )
                    )
            else:
                events.append(
                    LedgerEvent(
                        batch_id=batch_id,
                        namespace=Namespace.FAILURES,
                        kind="failure",
                        entity=entity,
                        payload_type="AreaFailure",
                        payload={
                            "error_kind": result.error_kind,
                            "message": result.error_message,
                        },
                        tag=FAILURE_TAG,
                    )
                )
        return events

    @staticmethod
    def summary(results: Iterable[AreaResult]) -> Dict[str, Any]:
        """Counts, failures by kind and mean widths over a batch."""
        results = list(results)
        ok = [r for r in results if r.ok]
        failures_by_kind: Dict[str, int] = {}
        for r in results:
            if not r.ok:
                failures_by_kind[r.error_kind] = failures_by_kind.get(r.error_kind, 0) + 1  # type: ignore[index]

        def _mean(values: List[float]) -> Optional[float]:
            return sum(values) / len(values) if values else None

        return {
            "n_areas": len(results),
            "n_succeeded": len(ok),
            "n_failed": len(results) - len(ok),
            "failures_by_kind": failures_by_kind,
            "mean_width": _mean([r.interval.width for r in ok]),  # type: ignore[union-attr]
            "mean_direct_width": _mean([r.direct.width for r in ok]),  # type: ignore[union-attr]
            "mean_width_ratio": _mean([r.width_ratio for r in ok]),  # type: ignore[misc]
        }
