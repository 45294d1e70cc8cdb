"""
fabci.core.ledger
=================

ibis-framework based audit ledger for interval batches.

The interval math never touches the ledger; the batch runner optionally
appends one event per fact (observation, prior, interval, failure) so a
batch can be inspected and reproduced later.

- Backend-agnostic via ibis-framework (duckdb in-memory for tests)
- JSON payloads with type-based wrap/unwrap
- Automatic fabci_version tracking

Examples:
---------
>>> from fabci.core.ledger import Ledger, create_test_connection
>>> from fabci.core.names import Namespace
>>>
>>> conn = create_test_connection("duckdb")
>>> ledger = Ledger(conn)
>>> ledger.write_event(
...     batch_id="b1", namespace=Namespace.OBS, kind="observation",
...     entity="county-17", payload_type="AreaObservation",
...     payload={"estimate": 100.0, "known_variance": 25.0}
... )
>>>
>>> results = ledger.table.filter(ledger.table.payload_type == "AreaObservation").execute()
>>> len(results)
1
>>> rows = ledger.unwrap_results(results)
>>> rows[0]["payload"]["estimate"]
100.0
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union
import json
import uuid as uuid_module

import ibis
import pandas as pd
from ibis import BaseBackend
from ibis.expr.types import Table

from fabci.__version__ import __version__
from fabci.core.errors import InvalidInputError
from fabci.core.names import BatchId, Namespace

NamespaceLike = Union[Namespace, str]


def get_ledger_schema() -> ibis.Schema:
    """Get the standardized ledger schema using ibis.Schema."""
    return ibis.schema(
        [
            ("uuid", "string"),
            ("ledger_name", "string"),
            ("batch_id", "string"),
            ("ts", "timestamp"),
            ("namespace", "string"),
            ("kind", "string"),
            ("entity", "string"),
            ("tag", "string"),
            ("payload_type", "string"),
            ("payload", "string"),  # JSON text
            ("fabci_version", "string"),
        ]
    )


class PayloadType(ABC):
    """Abstract base class for payload type handlers."""

    @abstractmethod
    def wrap(self, data: Any) -> str:
        """Convert data to JSON string for storage."""

    @abstractmethod
    def unwrap(self, json_str: str) -> Any:
        """Convert JSON string back to data."""


class JSONPayloadType(PayloadType):
    """Default JSON payload type handler.

    Non-finite floats are written as ``Infinity``/``NaN`` tokens, which
    `json.loads` reads back, so an infinite prior variance survives.
    """

    def wrap(self, data: Any) -> str:
        return json.dumps(data, separators=(",", ":"))

    def unwrap(self, json_str: str) -> Any:
        return json.loads(json_str)


class PayloadTypeRegistry:
    """Registry for payload type handlers."""

    _handlers: Dict[str, PayloadType] = {}
    _default_handler = JSONPayloadType()

    @classmethod
    def register(cls, payload_type: str, handler: PayloadType) -> None:
        """Register a payload type handler."""
        cls._handlers[payload_type] = handler

    @classmethod
    def get_handler(cls, payload_type: str) -> PayloadType:
        """Get handler for payload type, fallback to default JSON handler."""
        return cls._handlers.get(payload_type, cls._default_handler)

    @classmethod
    def wrap(cls, payload_type: str, data: Any) -> str:
        return cls.get_handler(payload_type).wrap(data)

    @classmethod
    def unwrap(cls, payload_type: str, json_str: str) -> Any:
        return cls.get_handler(payload_type).unwrap(json_str)


@dataclass(frozen=True, kw_only=True)
class LedgerEvent:
    """
    One event to append; `Ledger.write_events` writes many in one insert.

    Attributes:
        batch_id: Batch the event belongs to
        namespace: Event namespace
        kind: Event kind (e.g. "observation", "interval")
        entity: Area identifier
        payload_type: Name used to look up the payload handler
        payload: Payload data to be wrapped
        tag: Optional tag for filtering
        ts: Timestamp, defaults to now (UTC)
    """

    batch_id: Union[BatchId, str]
    namespace: NamespaceLike
    kind: str
    entity: str
    payload_type: str
    payload: Any
    tag: Optional[str] = None
    ts: Optional[datetime] = field(default=None)


def _utc_naive(ts: Optional[datetime]) -> datetime:
    if ts is None:
        ts = datetime.now(timezone.utc)
    elif ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


class Ledger:
    """
    Append-only event table behind an ibis connection.

    Responsibilities:
    - Schema guarantee and table lifecycle
    - Automatic ledger_name and fabci_version injection
    - Payload wrapping/unwrapping via PayloadTypeRegistry

    Query construction and aggregation are left to callers through the
    `table` ibis expression.
    """

    def __init__(
        self,
        connection: BaseBackend,
        ledger_name: str = "default",
        table_name: str = "ledger",
    ):
        """Initialize ledger with connection and names.

        Parameters
        ----------
        connection : BaseBackend
            Ibis backend connection
        ledger_name : str
            Name of this ledger instance (several can share one table)
        table_name : str
            Name of the table in the backend
        """
        self.connection = connection
        self.ledger_name = ledger_name
        self.table_name = table_name
        self._schema = get_ledger_schema()
        self._ensure_table_exists()

    def _ensure_table_exists(self) -> None:
        if self.table_name not in self.connection.list_tables():
            self.connection.create_table(self.table_name, schema=self._schema)

    @property
    def table(self) -> Table:
        """
        Ibis table filtered to this ledger's name.

        Examples
        --------
        >>> conn = create_test_connection("duckdb")
        >>> ledger = Ledger(conn, "test_ledger")
        >>> ledger.table.filter(ledger.table.namespace == "obs").count().execute()
        0
        """
        table = self.connection.table(self.table_name)
        return table.filter(table.ledger_name == self.ledger_name)

    @property
    def raw_table(self) -> Table:
        """Unfiltered ibis table, for analysis across several ledgers."""
        return self.connection.table(self.table_name)

    def _record(self, event: LedgerEvent) -> Dict[str, Any]:
        if not event.entity:
            raise InvalidInputError("ledger events need a non-empty entity")
        return {
            "uuid": str(uuid_module.uuid4()),
            "ledger_name": self.ledger_name,
            "batch_id": str(event.batch_id),
            "ts": _utc_naive(event.ts),
            "namespace": str(event.namespace),
            "kind": event.kind,
            "entity": str(event.entity),
            "tag": event.tag or "",
            "payload_type": event.payload_type,
            "payload": PayloadTypeRegistry.wrap(event.payload_type, event.payload),
            "fabci_version": __version__,
        }

    def write_events(self, events: Iterable[LedgerEvent]) -> int:
        """Append events in a single insert.

        Returns
        -------
        int
            Number of events written
        """
        records = [self._record(e) for e in events]
        if not records:
            return 0
        frame = pd.DataFrame.from_records(records, columns=list(self._schema.names))
        self.connection.insert(
            self.table_name, ibis.memtable(frame, schema=self._schema)
        )
        return len(records)

    def write_event(
        self,
        *,
        batch_id: Union[BatchId, str],
        namespace: NamespaceLike,
        kind: str,
        entity: str,
        payload_type: str,
        payload: Any,
        tag: Optional[str] = None,
        ts: Optional[datetime] = None,
    ) -> None:
        """Write a typed event to the ledger.

        Parameters
        ----------
        batch_id : BatchId or str
            Batch the event belongs to
        namespace : NamespaceLike
            Event namespace
        kind : str
            Event kind/type
        entity : str
            Area identifier
        payload_type : str
            Type of payload for wrap/unwrap handling
        payload : Any
            Payload data to be wrapped
        tag : str, optional
            Optional tag for filtering
        ts : datetime, optional
            Timestamp, defaults to now
        """
        self.write_events(
            [
                LedgerEvent(
                    batch_id=batch_id,
                    namespace=namespace,
                    kind=kind,
                    entity=entity,
                    payload_type=payload_type,
                    payload=payload,
                    tag=tag,
                    ts=ts,
                )
            ]
        )

    def unwrap_payload(self, payload_type: str, payload_json: str) -> Any:
        return PayloadTypeRegistry.unwrap(payload_type, payload_json)

    def unwrap_results(self, df: Any) -> List[Dict[str, Any]]:
        """
        Unwrap payloads in query results.

        Parameters
        ----------
        df : pandas.DataFrame
            Query results with payload and payload_type columns

        Returns
        -------
        List[Dict[str, Any]]
            Records with unwrapped payloads
        """
        records: List[Dict[str, Any]] = df.to_dict("records")
        for record in records:
            if "payload" in record and "payload_type" in record:
                record["payload"] = self.unwrap_payload(
                    record["payload_type"], record["payload"]
                )
        return records


def create_test_connection(backend: str = "duckdb") -> BaseBackend:
    """Create an in-memory connection for tests and notebooks.

    Parameters
    ----------
    backend : str
        Backend type (only "duckdb" supports inserts)

    Returns
    -------
    BaseBackend
        Ibis backend connection
    """
    if backend == "duckdb":
        return ibis.duckdb.connect(":memory:")
    raise InvalidInputError(f"Unsupported backend: {backend}. Use 'duckdb'.")
