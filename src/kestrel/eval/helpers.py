from __future__ import annotations

from typing import Optional

from ..types import CancelSignal, Cancelled, Frame, KBool, KNumber, KString, Value

def is_truthy(val: Value) -> bool:
    match val:
        case KBool(value=b):
            return b
        case KNumber(value=num):
            return num != 0
        case KString(value=s):
            return bool(s)
        case _:
            return True

def check_cancelled(frame: Frame) -> None:
    """Raise Cancelled if the host asked this run to stop."""
    state = frame.state
    cancel: Optional[CancelSignal] = state.cancel if state is not None else None

    if cancel is not None and cancel.is_set():
        raise Cancelled()
