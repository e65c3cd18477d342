"""Module reload transport — re-import an edited module, then flush.

Re-evaluating the module re-runs its registration calls, which queue
(old, new) pairs for every component whose function object changed. The
flush then swaps them into the live tree. If anything fails the caller's
fallback (typically a full restart) runs instead; without one the
exception propagates.
"""

from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import Callable

from refreshx.refresh import flush

logger = logging.getLogger("refreshx.reload")


def hot_reload(module: ModuleType, on_failure: Callable[[], None] | None = None) -> ModuleType:
    """Reload ``module`` and apply the pending component replacements."""
    try:
        module = importlib.reload(module)
        flush()
    except Exception:
        logger.exception("Failed to flush updates for %s", module.__name__)
        if on_failure is None:
            raise
        on_failure()
    else:
        logger.info("Hot reloaded %s", module.__name__)
    return module
