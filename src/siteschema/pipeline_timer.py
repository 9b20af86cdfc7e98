# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Stage timer for the analysis pipeline.

Each stage runs inside ``with timer.stage(name):``. Timings land in
``timings_ms`` in the order the stages ran; a stage that raises is
remembered so ``failure_report()`` can name it.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

_STAGE_HINTS = {
    "render": "Page may be slow to load or keep long-polling connections open.",
    "extract": "Page has very large HTML. Consider a more specific URL.",
}


def _ms(ns: int) -> float:
    return round(ns / 1e6, 1)


class PipelineTimer:
    """Wall-clock timings for one analysis."""

    __slots__ = ("timings_ms", "failed_stage", "_origin_ns")

    def __init__(self) -> None:
        self.timings_ms: dict[str, float] = {}
        self.failed_stage: str | None = None
        self._origin_ns = time.perf_counter_ns()

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        start = time.perf_counter_ns()
        try:
            yield
        except BaseException:
            self.failed_stage = name
            raise
        finally:
            self.timings_ms[name] = _ms(time.perf_counter_ns() - start)

    def total_ms(self) -> float:
        return _ms(time.perf_counter_ns() - self._origin_ns)

    def failure_report(self) -> dict[str, Any]:
        """Diagnostic dict for a pipeline that raised; logged, never returned to callers."""
        failed = self.failed_stage or "unknown"
        return {
            "failed_at": failed,
            "completed_stages": [{"stage": n, "ms": ms} for n, ms in self.timings_ms.items() if n != failed],
            "total_ms": self.total_ms(),
            "hint": _STAGE_HINTS.get(failed, f"Failed during '{failed}' stage."),
        }
