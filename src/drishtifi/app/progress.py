"""Simulated progress for the loading view.

The percentage is driven by a timer only. It says nothing about the real
request, which reports no progress at all.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

TICK_SECONDS = 0.15
CAP_PERCENT = 99

LOADING_STAGES: Tuple[Tuple[int, str], ...] = (
    (0, "Analyzing physical assets..."),
    (20, "Reading handwritten ledger..."),
    (40, "Assessing inventory value..."),
    (60, "Calculating daily sales volume..."),
    (80, "Synthesizing trust score..."),
    (95, "Finalizing recommendations..."),
)


def stage_message(percent: int) -> str:
    message = LOADING_STAGES[0][1]
    for threshold, text in LOADING_STAGES:
        if percent >= threshold:
            message = text
    return message


@dataclass(frozen=True)
class ProgressSnapshot:
    percent: int
    message: str

    def to_dict(self) -> dict:
        return {"percent": self.percent, "message": self.message, "authoritative": False}


class SimulatedProgress:
    """One percent per 150 ms tick, parked at 99% until the caller leaves the loading view."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._started: Optional[float] = None

    def start(self) -> None:
        self._started = self._clock()

    def stop(self) -> None:
        self._started = None

    @property
    def running(self) -> bool:
        return self._started is not None

    def snapshot(self) -> ProgressSnapshot:
        if self._started is None:
            return ProgressSnapshot(0, stage_message(0))
        ticks = int((self._clock() - self._started) / TICK_SECONDS)
        percent = max(0, min(CAP_PERCENT, ticks))
        return ProgressSnapshot(percent, stage_message(percent))
