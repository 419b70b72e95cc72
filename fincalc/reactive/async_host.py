"""
Async host — last-write-wins compute for a ReactiveCalculatorCore

Validation runs inline on the event loop (it is cheap and must be immediate);
compute runs in an executor. At most one compute is in flight:

- a newer edit cancels the in-flight task
- an outcome whose revision is older than the core's is discarded

There is no queue: intermediate values typed while a compute was running are
never computed.
"""

import asyncio
from concurrent.futures import Executor
from typing import Any, Generic, Mapping

from fincalc.reactive.calculator import (
    CalculatorState,
    R,
    ReactiveCalculatorCore,
    evaluate_compute,
)


class AsyncCalculatorHost(Generic[R]):
    """
    Args:
        core: Core built with CalculatorConfig(compute_on_change=False)
        executor: Executor for compute (None = loop default)

    Raises:
        ValueError: If the core computes on change by itself
    """

    def __init__(self, core: ReactiveCalculatorCore[R], executor: Executor | None = None):
        if core.config.compute_on_change:
            raise ValueError(
                "AsyncCalculatorHost requires a core with compute_on_change=False"
            )
        self.core = core
        self._executor = executor
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> CalculatorState[R]:
        return self.core.state

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    async def update_field(self, field: str, raw_value: Any) -> CalculatorState[R]:
        """Validate now, schedule compute, return the validated state."""
        state = self.core.update_field(field, raw_value)
        self._schedule(state)
        return state

    async def set_values(self, updates: Mapping[str, Any]) -> CalculatorState[R]:
        state = self.core.set_values(updates)
        self._schedule(state)
        return state

    def reset(self) -> CalculatorState[R]:
        self._cancel()
        return self.core.reset()

    async def wait(self) -> CalculatorState[R]:
        """Wait for the in-flight compute (if any) and return the state."""
        while self._task is not None:
            task = self._task
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            if self._task is task:
                self._task = None
        return self.core.state

    async def close(self) -> None:
        self._cancel()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _schedule(self, state: CalculatorState[R]) -> None:
        self._cancel()
        if not (state.is_valid and state.is_dirty):
            return
        values = self.core.values_snapshot()
        self._task = asyncio.get_running_loop().create_task(
            self._compute(state.revision, values)
        )

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _compute(self, revision: int, values: dict[str, Any]) -> None:
        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(
            self._executor,
            evaluate_compute,
            self.core.compute_fn,
            values,
            self.core.calculator_id,
        )
        self.core.apply_outcome(revision, outcome)
