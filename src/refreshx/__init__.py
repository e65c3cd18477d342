"""refreshx: hot replacement of live components with their hook state preserved."""

from importlib.metadata import version as _version

__version__ = _version("refreshx")

from refreshx.options import Options
from refreshx.signature import (
    Signature,
    SignStatus,
    compute_key,
    finalize_signature,
    get_signature,
    record_signature,
    sign,
)
from refreshx.tracking import RemapCycleError
from refreshx.runtime import (
    attach,
    detach,
    register,
    get_pending_updates,
    clear_pending,
    replace_component,
)
from refreshx.refresh import flush, process_pair, should_reset, is_component
from refreshx.protocol import component, refresh_reg, refresh_sig
# host, reload and textual NOT auto-imported — opt-in only

__all__ = [
    "Options",
    "Signature",
    "SignStatus",
    "compute_key",
    "get_signature",
    "record_signature",
    "finalize_signature",
    "sign",
    "RemapCycleError",
    "attach",
    "detach",
    "register",
    "get_pending_updates",
    "clear_pending",
    "replace_component",
    "flush",
    "process_pair",
    "should_reset",
    "is_component",
    "component",
    "refresh_reg",
    "refresh_sig",
]
