"""
fabci.backends.polars.frames
============================

Polars adapters: one row per area in, one row per area out.

Input columns (names can be remapped with ``columns``):

- ``area_id``, ``estimate``, ``prior_mean``, ``prior_variance``
- either ``variance`` (known) or ``sample_variance`` and ``sample_df``
- optionally ``variance_shape`` and ``variance_scale``

A row with a non-null ``variance`` is treated as known-variance; otherwise
it must carry ``sample_variance`` and ``sample_df``. Malformed rows become
failed results instead of aborting the frame.

Doctest (smoke):
>>> import polars as pl
>>> from fabci.backends.polars.frames import intervals_from_frame
>>> df = pl.DataFrame({
...     "area_id": ["a", "b"], "estimate": [100.0, 50.0],
...     "variance": [25.0, 4.0], "prior_mean": [100.0, 0.0],
...     "prior_variance": [1.0, float("inf")],
... })
>>> out = intervals_from_frame(df)
>>> out.columns[-3:]
['method', 'error_kind', 'error_message']
>>> out["error_kind"].null_count()
2
"""

from __future__ import annotations
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import polars as pl

from fabci.core.errors import FabError, InvalidInputError
from fabci.runtime.runners import AreaRecord, AreaResult, BatchRunner
from fabci.stats.schemes.area_means.model import AreaObservation, LinkingPrior

LOG = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("area_id", "estimate", "prior_mean", "prior_variance")
KNOWN_VARIANCE_COLUMNS = ("variance",)
ESTIMATED_VARIANCE_COLUMNS = ("sample_variance", "sample_df")
OPTIONAL_COLUMNS = ("variance_shape", "variance_scale")

RESULT_SCHEMA = {
    "area_id": pl.Utf8,
    "lower": pl.Float64,
    "upper": pl.Float64,
    "width": pl.Float64,
    "direct_lower": pl.Float64,
    "direct_upper": pl.Float64,
    "direct_width": pl.Float64,
    "method": pl.Utf8,
    "error_kind": pl.Utf8,
    "error_message": pl.Utf8,
}


def _resolve(columns: Optional[Mapping[str, str]]) -> Dict[str, str]:
    names = (
        REQUIRED_COLUMNS
        + KNOWN_VARIANCE_COLUMNS
        + ESTIMATED_VARIANCE_COLUMNS
        + OPTIONAL_COLUMNS
    )
    mapping = {name: name for name in names}
    if columns:
        unknown = set(columns) - set(names)
        if unknown:
            raise InvalidInputError(f"Unknown column keys: {sorted(unknown)}")
        mapping.update(columns)
    return mapping


def validate_frame(
    df: pl.DataFrame, columns: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Check that ``df`` has the columns needed to build records.

    Returns:
        The resolved mapping from canonical to actual column names

    Raises:
        InvalidInputError: when required columns are missing
    """
    mapping = _resolve(columns)
    present = set(df.columns)
    missing = [mapping[c] for c in REQUIRED_COLUMNS if mapping[c] not in present]
    has_known = mapping["variance"] in present
    has_estimated = all(mapping[c] in present for c in ESTIMATED_VARIANCE_COLUMNS)
    if not (has_known or has_estimated):
        missing.append(
            f"{mapping['variance']} or ({mapping['sample_variance']}, {mapping['sample_df']})"
        )
    if missing:
        raise InvalidInputError(f"Frame is missing columns: {missing}")
    return mapping


def _value(row: Mapping[str, Any], mapping: Mapping[str, str], key: str) -> Any:
    value = row.get(mapping[key])
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _record_from_row(row: Mapping[str, Any], mapping: Mapping[str, str]) -> AreaRecord:
    area_id = row[mapping["area_id"]]
    if area_id is None:
        raise InvalidInputError("area_id must not be null")
    variance = _value(row, mapping, "variance")
    estimate = _value(row, mapping, "estimate")
    if variance is not None:
        observation = AreaObservation(estimate=estimate, known_variance=variance)
    else:
        observation = AreaObservation(
            estimate=estimate,
            sample_variance=_value(row, mapping, "sample_variance"),
            sample_df=_value(row, mapping, "sample_df"),
        )
    prior = LinkingPrior(
        prior_mean=_value(row, mapping, "prior_mean"),
        prior_variance=_value(row, mapping, "prior_variance"),
        variance_shape=_value(row, mapping, "variance_shape"),
        variance_scale=_value(row, mapping, "variance_scale"),
    )
    return AreaRecord(area_id=str(area_id), observation=observation, prior=prior)


def records_from_frame(
    df: pl.DataFrame, columns: Optional[Mapping[str, str]] = None
) -> List[AreaRecord]:
    """Convert every row to an `AreaRecord`, raising on the first malformed row."""
    mapping = validate_frame(df, columns)
    return [_record_from_row(row, mapping) for row in df.iter_rows(named=True)]


def results_to_frame(results: Sequence[AreaResult]) -> pl.DataFrame:
    """One row per result with FAB and direct endpoints or the failure."""
    rows = []
    for r in results:
        fab, direct = r.interval, r.direct
        rows.append(
            {
                "area_id": r.area_id,
                "lower": fab.lower if fab else None,
                "upper": fab.upper if fab else None,
                "width": fab.width if fab else None,
                "direct_lower": direct.lower if direct else None,
                "direct_upper": direct.upper if direct else None,
                "direct_width": direct.width if direct else None,
                "method": fab.method if fab else None,
                "error_kind": r.error_kind,
                "error_message": r.error_message,
            }
        )
    return pl.DataFrame(rows, schema=RESULT_SCHEMA)


def intervals_from_frame(
    df: pl.DataFrame,
    *,
    runner: Optional[BatchRunner] = None,
    columns: Optional[Mapping[str, str]] = None,
    batch_id: Optional[str] = None,
) -> pl.DataFrame:
    """
    Compute FAB and direct intervals for every row of ``df``.

    Args:
        df: One row per area
        runner: Batch runner to use (default engines when None)
        columns: Override of canonical column names, e.g. ``{"estimate": "y"}``
        batch_id: Ledger batch identifier passed to the runner

    Returns:
        ``df`` with the result columns appended, in the same row order
    """
    mapping = validate_frame(df, columns)
    runner = runner or BatchRunner()

    slots: List[Union[AreaRecord, AreaResult]] = []
    for row in df.iter_rows(named=True):
        try:
            slots.append(_record_from_row(row, mapping))
        except FabError as exc:
            area_id = row.get(mapping["area_id"])
            area_id = "" if area_id is None else str(area_id)
            LOG.warning("row for area %r rejected: %s", area_id, exc)
            slots.append(
                AreaResult(area_id=area_id, error_kind=exc.kind, error_message=str(exc))
            )

    computed = iter(
        runner.run([s for s in slots if isinstance(s, AreaRecord)], batch_id=batch_id)
    )
    results = [next(computed) if isinstance(s, AreaRecord) else s for s in slots]
    out = results_to_frame(results).drop("area_id")
    clashes = [c for c in out.columns if c in df.columns]
    return df.drop(clashes).hstack(out)
