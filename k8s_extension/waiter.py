"""
Condition polling.

A wait is a small state machine: it starts ``Polling`` and ends either
``Satisfied`` or ``TimedOut``. The first check runs immediately, then once
per ``POLL_INTERVAL``. A failed fetch only makes that tick inconclusive.
The poll loop races the timeout and an optional cancel event; whichever
fires first decides the result, and cancellation is reported like a timeout.
"""

from __future__ import annotations

import asyncio
import enum
import re
from dataclasses import dataclass
from typing import Awaitable, Callable

from k8s_extension.client import ResourceClient
from k8s_extension.errors import ResolutionError
from k8s_extension.logging_utils import fields, get_logger
from k8s_extension.resource import EndpointCoordinate, ResourceRef
from k8s_extension.values import Missing, Unstructured, nested_str

logger = get_logger("waiter")

POLL_INTERVAL = 1.0  # seconds
DEFAULT_STATUS = "True"
DEFAULT_TIMEOUT = "60s"

NO_CONDITIONS = "NoConditions"
CONDITION_NOT_FOUND = "ConditionNotFound"


class WaitState(str, enum.Enum):
    POLLING = "Polling"
    SATISFIED = "Satisfied"
    TIMED_OUT = "TimedOut"


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Parse a Go-style duration (``90s``, ``1.5m``, ``1h30m``) into seconds."""
    s = text.strip()
    if s in ("0", "+0", "-0"):
        return 0.0

    sign = -1.0 if s.startswith("-") else 1.0
    body = s[1:] if s[:1] in ("+", "-") else s
    total = 0.0
    pos = 0
    for m in _COMPONENT_RE.finditer(body):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _UNITS[m.group(2)]
        pos = m.end()
    if not body or pos != len(body):
        raise ResolutionError(f"invalid timeout format: invalid duration {text!r}")
    return sign * total


def parse_timeout(text: str | None) -> float:
    seconds = parse_duration(text or DEFAULT_TIMEOUT)
    if seconds <= 0:
        raise ResolutionError("invalid timeout format: timeout must be positive")
    return seconds


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass
class PollState:
    ref: ResourceRef
    condition: str
    status: str = DEFAULT_STATUS
    timeout: float = 60.0
    last_status: str | None = None
    state: WaitState = WaitState.POLLING
    ticks: int = 0
    cancelled: bool = False

    def observe(self, obj: dict | None) -> WaitState:
        """Fold one fetched object (or None for a failed fetch) into the state."""
        self.ticks += 1
        if obj is None:
            return self.state

        conditions = Unstructured(obj).conditions()
        if isinstance(conditions, Missing):
            self.last_status = NO_CONDITIONS
            return self.state

        for cond in conditions:
            if not isinstance(cond, dict):
                continue
            if nested_str(cond, "type") != self.condition:
                continue
            cond_status = nested_str(cond, "status")
            self.last_status = "" if isinstance(cond_status, Missing) else cond_status
            if self.last_status == self.status:
                self.state = WaitState.SATISFIED
            return self.state

        self.last_status = CONDITION_NOT_FOUND
        return self.state

    @property
    def last_status_label(self) -> str:
        # Nothing observed yet: every fetch so far failed.
        return "Unknown" if self.last_status is None else self.last_status

    @property
    def done(self) -> bool:
        return self.state is not WaitState.POLLING


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ConditionWaiter:
    """Polls one resource through a ResourceClient until its condition matches."""

    def __init__(
        self,
        client: ResourceClient,
        coordinate: EndpointCoordinate,
        *,
        interval: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.coordinate = coordinate
        self.interval = POLL_INTERVAL if interval is None else interval
        self._sleep = sleep

    async def _fetch(self, state: PollState) -> dict | None:
        try:
            return await self.client.get(self.coordinate, state.ref.name, state.ref.namespace)
        except Exception as e:  # noqa: BLE001
            logger.debug(f"Poll fetch failed, retrying {fields(resource=state.ref, error=e)}")
            return None

    async def _poll(self, state: PollState) -> None:
        while True:
            if state.observe(await self._fetch(state)) is WaitState.SATISFIED:
                return
            await self._sleep(self.interval)

    async def wait(self, state: PollState, cancel: asyncio.Event | None = None) -> PollState:
        """Drive ``state`` to a terminal state and return it."""
        poll = asyncio.ensure_future(self._poll(state))
        tasks = {poll}
        stop = None
        if cancel is not None:
            stop = asyncio.ensure_future(cancel.wait())
            tasks.add(stop)

        try:
            done, _ = await asyncio.wait(
                tasks, timeout=state.timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if poll in done:
            poll.result()
            state.state = WaitState.SATISFIED
            return state

        state.state = WaitState.TIMED_OUT
        state.cancelled = stop is not None and stop in done
        return state
