"""
Permit Determination Service

Integration-layer helper for the form UI: re-evaluates permits whenever a
field changes and only hands the summary to the persistence callback when
it actually differs from the last one stored.

The engine stays stateless; the last-stored summary lives here, owned by
a single caller. Not thread-safe.
"""

import logging
from typing import Callable, Optional

from .determination_engine import PermitDeterminationEngine, get_determination_engine
from .fact_normalizer import RawInput
from .permit_model import PermitSummary

logger = logging.getLogger("permit_service")

SummaryCallback = Callable[[PermitSummary], None]


class PermitDeterminationService:
    """
    Diff-before-write wrapper around the determination engine.

    Usage:
        service = PermitDeterminationService(on_change=store.save_permits)
        service.recompute(form_values)  # on field blur
    """

    def __init__(
        self,
        on_change: SummaryCallback,
        engine: Optional[PermitDeterminationEngine] = None,
        initial: Optional[PermitSummary] = None,
    ):
        self._on_change = on_change
        self._engine = engine or get_determination_engine()
        self._last: Optional[PermitSummary] = initial

    @property
    def last_summary(self) -> Optional[PermitSummary]:
        return self._last

    def recompute(self, raw: RawInput) -> bool:
        """
        Evaluate and persist if changed.

        Returns:
            True if on_change was called
        """
        summary = self._engine.evaluate(raw)
        if summary == self._last:
            logger.debug("Permit summary unchanged; skipping write")
            return False

        if not summary.is_valid:
            logger.info(f"Permit summary invalid: {[d.message for d in summary.errors]}")
        else:
            logger.info(f"Permit summary changed: {list(summary.all_permits)}")

        self._on_change(summary)
        self._last = summary
        return True

    def reset(self) -> None:
        """Forget the last stored summary (e.g. when a new project is started)."""
        self._last = None
