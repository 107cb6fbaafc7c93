from __future__ import annotations

from dataclasses import dataclass, field
from types import TracebackType
from typing import Dict, List, Optional
from typing_extensions import Protocol, TypeAlias

# ---------- Value Model ----------

@dataclass(frozen=True)
class KNumber:
    value: float
    def __repr__(self) -> str:
        from .eval.common import format_number
        return format_number(self.value)

@dataclass(frozen=True)
class KString:
    value: str
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass(frozen=True)
class KBool:
    value: bool
    def __repr__(self) -> str:
        return "true" if self.value else "false"

Value: TypeAlias = KNumber | KString | KBool

def kind_name(value: Value) -> str:
    match value:
        case KNumber():
            return "number"
        case KString():
            return "string"
        case KBool():
            return "boolean"
    return type(value).__name__

# ---------- Cancellation ----------

class CancelSignal(Protocol):
    """Anything with an ``is_set()`` method; ``threading.Event`` is the usual one."""
    def is_set(self) -> bool: ...

@dataclass
class RunState:
    """Per-run bookkeeping shared by every frame of one evaluation."""
    output: List[Value] = field(default_factory=list)
    cancel: Optional[CancelSignal] = None
    scoped: bool = False

# ---------- Environment ----------

class Frame:
    """Variable environment.

    A run uses a single root frame unless block scoping is enabled, in which
    case every ``if``/``while`` block gets a child frame. The parent link is
    read-through: lookups and assignments walk up the chain, ``define`` always
    binds in the frame it is called on.
    """

    def __init__(self, parent: Optional['Frame']=None):
        self.parent = parent
        self.vars: Dict[str, Value] = {}
        self.state: Optional[RunState] = parent.state if parent is not None else None

    def define(self, name: str, val: Value) -> None:
        self.vars[name] = val

    def get(self, name: str) -> Value:
        if name in self.vars:
            return self.vars[name]

        if self.parent is not None:
            return self.parent.get(name)

        raise UndefinedVariable(name)

    def set(self, name: str, val: Value) -> None:
        if name in self.vars:
            self.vars[name] = val
            return

        if self.parent is not None:
            self.parent.set(name, val)
            return

        raise UndefinedVariable(name)

    def has(self, name: str) -> bool:
        if name in self.vars:
            return True
        return self.parent is not None and self.parent.has(name)

    def snapshot(self) -> Dict[str, Value]:
        """Flatten the chain into one dict, inner bindings shadowing outer ones."""
        merged: Dict[str, Value] = {} if self.parent is None else self.parent.snapshot()
        merged.update(self.vars)
        return merged

    def __repr__(self) -> str:
        return f"Frame({self.vars!r})"

# ---------- Exceptions ----------

class KestrelError(Exception):
    """Base for lexer, parser and runtime failures.

    ``pos`` is a 0-based character offset into the source, ``line`` and
    ``column`` are 1-based.
    """
    pos: Optional[int]
    line: Optional[int]
    column: Optional[int]

    def __init__(self, message: str, pos: Optional[int]=None, line: Optional[int]=None, column: Optional[int]=None):
        super().__init__(message)
        self.message = message
        self.pos = pos
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return self.message

        if self.column is None:
            return f"{self.message} (line {self.line})"

        return f"{self.message} at line {self.line}, col {self.column}"

class KestrelRuntimeError(KestrelError):
    output: List[Value]
    py_trace: Optional[TracebackType]

    def __init__(self, message: str):
        super().__init__(message)
        self.output = []
        self.py_trace = None
        self._located = False

    @property
    def located(self) -> bool:
        return self._located

    def locate(self, pos: int, line: int, column: int) -> None:
        """Record where the fault happened; the innermost node wins."""
        if self._located:
            return
        self.pos = pos
        self.line = line
        self.column = column
        self._located = True

class UndefinedVariable(KestrelRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"Undefined variable '{name}'")
        self.name = name

class TypeMismatch(KestrelRuntimeError):
    def __init__(self, op: str, *operands: Value):
        kinds = " and ".join(kind_name(v) for v in operands)
        super().__init__(f"Operator '{op}' not supported for {kinds}")
        self.op = op
        self.operands = operands

class DivisionByZero(KestrelRuntimeError):
    def __init__(self) -> None:
        super().__init__("Division by zero")

class Cancelled(KestrelRuntimeError):
    def __init__(self) -> None:
        super().__init__("Evaluation cancelled")

class NestingTooDeep(KestrelRuntimeError):
    def __init__(self) -> None:
        super().__init__("Program nested too deeply to evaluate")
