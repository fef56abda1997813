"""Per-sample outcome of ``Pipeline.run()``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class EvaluationResult:
    """Outcome for one initial value after the pipeline has run.

    Every sample produces exactly one ``EvaluationResult``; nothing is
    dropped silently.  Inspect ``error`` / ``failed_at`` to detect failures;
    ``output`` is ``None`` whenever a step raised (there is no partial
    result).

    ``failed_at`` is the kind of the failing step (e.g. ``"PatternDispatch"``)
    and ``step_index`` its position in the pipeline.
    """

    sample: Any
    output: Any
    error: Exception | None
    failed_at: str | None
    step_index: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
