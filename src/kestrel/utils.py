from __future__ import annotations

import os as _os
from typing import Dict, List, Optional

from .types import Value

DEBUG_PY_TRACE_ENV = "KESTREL_DEBUG_PY_TRACE"

_TRUTHY_FLAGS = {"1", "true", "yes", "on"}
_FALSY_FLAGS = {"0", "false", "no", "off"}


def parse_flag(raw: str) -> Optional[bool]:
    """Interpret on/off style text; None when it is neither."""
    lowered = raw.strip().lower()
    if lowered in _TRUTHY_FLAGS:
        return True
    if lowered in _FALSY_FLAGS:
        return False
    return None


def debug_py_trace_enabled() -> bool:
    """Whether error reports should include the Python traceback."""
    raw = _os.environ.get(DEBUG_PY_TRACE_ENV)
    return raw is not None and parse_flag(raw) is not False


def set_debug_py_trace(enabled: bool) -> None:
    if enabled:
        _os.environ[DEBUG_PY_TRACE_ENV] = "1"
    else:
        _os.environ.pop(DEBUG_PY_TRACE_ENV, None)


def format_env(env: Dict[str, Value]) -> List[str]:
    """One ``name = value`` line per binding, sorted by name."""
    return [f"{name} = {env[name]!r}" for name in sorted(env)]
