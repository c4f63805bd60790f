import math
from typing import Union

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from core.exceptions import StoreError
from core.result import Result
from core.store.config_store import ConfigStore
from schema.records import DEFAULT_KILL_SWITCH, DELAY_KEY, KILL_SWITCH_KEY, KillSwitchRecord

Number = Union[int, float]


class DelayRepository:
    """Reads and writes the delay record (milliseconds of injected latency)."""

    def __init__(self, store: ConfigStore, default_delay: Number = 0):
        self.store = store
        self.default_delay = default_delay

    async def load(self) -> Result:
        result = await run_in_threadpool(self.store.load, DELAY_KEY, self.default_delay)
        if not result.ok:
            return result

        value = result.value
        valid = not isinstance(value, bool) and isinstance(value, (int, float))
        if not valid or not math.isfinite(value) or value < 0:
            return Result.failure(StoreError(f"Stored delay is not a finite non-negative number: {value!r}", DELAY_KEY))
        return Result.success(value)

    async def save(self, delay: Number) -> Result:
        return await run_in_threadpool(self.store.save, DELAY_KEY, delay)


class KillSwitchRepository:
    """Reads and writes the kill-switch record."""

    def __init__(self, store: ConfigStore):
        self.store = store

    async def load(self) -> Result:
        result = await run_in_threadpool(self.store.load, KILL_SWITCH_KEY, None)
        if not result.ok:
            return result
        if result.value is None:
            return Result.success(DEFAULT_KILL_SWITCH.model_copy(deep=True))

        try:
            return Result.success(KillSwitchRecord.model_validate(result.value))
        except ValidationError as e:
            return Result.failure(StoreError(f"Stored kill-switch record is invalid: {e.error_count()} error(s)", KILL_SWITCH_KEY))

    async def save(self, record: KillSwitchRecord) -> Result:
        return await run_in_threadpool(self.store.save, KILL_SWITCH_KEY, record.model_dump())
