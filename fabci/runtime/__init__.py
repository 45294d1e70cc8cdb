"""
fabci.runtime
=============

Execution infrastructure for running FAB intervals over many areas.

Key Components
--------------
- `AreaRecord`: one area's observation and prior
- `AreaResult`: interval, direct interval or isolated failure
- `BatchRunner`: inline or executor-backed batch processing with an
  optional audit ledger

Examples
--------
>>> from concurrent.futures import ThreadPoolExecutor
>>> from fabci.core.ledger import Ledger, create_test_connection
>>> from fabci.runtime.runners import BatchRunner
>>>
>>> # with ThreadPoolExecutor() as pool:
>>> #     runner = BatchRunner(ledger=Ledger(create_test_connection()), executor=pool)
>>> #     results = runner.run(records)
"""
