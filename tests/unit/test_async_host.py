"""
Tests for AsyncCalculatorHost

Covers:
1. Last-write-wins: only the latest edit's result is installed
2. Outdated outcomes are discarded
3. Validation is synchronous; compute runs off the loop
"""

import asyncio
import threading
from typing import Any, Mapping

import pytest

from fincalc.reactive import (
    AsyncCalculatorHost,
    CalculatorConfig,
    ComputeOutcome,
    FieldKind,
    FieldSpec,
    ReactiveCalculatorCore,
    positive,
    required,
)

FIELDS = {"x": FieldSpec(FieldKind.NUMBER, default=1.0, label="X")}
RULES = {"x": [required(), positive()]}
MANUAL = CalculatorConfig(compute_on_change=False)


def doubled(values: Mapping[str, Any]) -> float:
    return values["x"] * 2


def make_core(compute=doubled, config: CalculatorConfig = MANUAL) -> ReactiveCalculatorCore:
    return ReactiveCalculatorCore("async-toy", FIELDS, compute, rules=RULES, config=config)


class TestAsyncCalculatorHost:
    """Tests for AsyncCalculatorHost"""

    def test_requires_manual_core(self) -> None:
        """A core that computes on change would compute twice"""
        with pytest.raises(ValueError, match="compute_on_change"):
            AsyncCalculatorHost(make_core(config=CalculatorConfig()))

    def test_single_edit(self) -> None:
        async def scenario():
            host = AsyncCalculatorHost(make_core())
            state = await host.update_field("x", "21")
            assert state.is_valid
            assert state.result is None
            return await host.wait()

        state = asyncio.run(scenario())
        assert state.result == pytest.approx(42.0)

    def test_last_write_wins(self) -> None:
        """A newer edit supersedes the one still computing"""
        release = threading.Event()
        seen: list[float] = []

        def slow(values: Mapping[str, Any]) -> float:
            seen.append(values["x"])
            if values["x"] == 1.5:
                release.wait(timeout=5)
            return values["x"] * 2

        async def scenario():
            host = AsyncCalculatorHost(make_core(slow))
            await host.update_field("x", "1.5")
            await asyncio.sleep(0.05)
            await host.update_field("x", "3")
            release.set()
            return await host.wait()

        state = asyncio.run(scenario())
        assert state.result == pytest.approx(6.0)
        assert state.values["x"] == 3.0

    def test_invalid_edit_cancels_compute(self) -> None:
        """An invalid edit schedules nothing and keeps the last result"""

        async def scenario():
            host = AsyncCalculatorHost(make_core())
            await host.update_field("x", "5")
            await host.wait()
            state = await host.update_field("x", "-1")
            assert not host.pending
            return await host.wait()

        state = asyncio.run(scenario())
        assert not state.is_valid
        assert state.result == pytest.approx(10.0)
        assert state.is_stale

    def test_set_values(self) -> None:
        async def scenario():
            host = AsyncCalculatorHost(make_core())
            await host.set_values({"x": "4"})
            return await host.wait()

        assert asyncio.run(scenario()).result == pytest.approx(8.0)

    def test_reset_cancels_pending(self) -> None:
        async def scenario():
            host = AsyncCalculatorHost(make_core())
            await host.update_field("x", "4")
            state = host.reset()
            assert not host.pending
            await host.close()
            return state

        state = asyncio.run(scenario())
        assert state.result is None
        assert state.values["x"] == 1.0

    def test_stale_outcome_discarded(self) -> None:
        """An outcome computed for an older revision is ignored by the core"""
        core = make_core()
        core.update_field("x", "2")
        old = core.revision
        core.update_field("x", "3")
        assert not core.apply_outcome(old, ComputeOutcome(result=4.0))
        assert core.state.result is None
