from __future__ import annotations

import logging
import sys
import threading
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .evaluator import execute
from .lexer_rd import tokenize
from .parser_rd import parse
from .types import CancelSignal, Frame, KestrelError, KestrelRuntimeError, Value
from .eval.common import stringify
from .utils import debug_py_trace_enabled

logger = logging.getLogger(__name__)

USAGE = "usage: kestrel [--scoped] [--timeout SECONDS] [--tokens | --ast] [--verbose] [FILE | - | SOURCE]"

@dataclass
class RunResult:
    """Printed values in execution order plus the final variable table."""
    output: List[Value] = field(default_factory=list)
    env: Dict[str, Value] = field(default_factory=dict)

    def lines(self) -> List[str]:
        return [stringify(value) for value in self.output]

def run(
    src: str,
    env: Optional[Frame] = None,
    cancel: Optional[CancelSignal] = None,
    scoped: bool = False,
) -> RunResult:
    """Lex, parse and execute ``src``.

    Each stage finishes before the next starts, so a lex or parse error means
    nothing ran. Pass ``env`` to keep variables across calls (the REPL does).
    """
    tokens = tokenize(src)
    program = parse(tokens)

    if env is None:
        env = Frame()

    logger.debug("executing %d statement(s) (scoped=%s)", len(program.children), scoped)
    output = execute(program, env, cancel=cancel, scoped=scoped)

    return RunResult(output=output, env=env.snapshot())

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        return sys.stdin.read()

    candidate = Path(arg)
    try:
        is_file = candidate.is_file()
    except OSError:
        # Too long or otherwise invalid as a path: it can only be source.
        is_file = False

    if is_file:
        return candidate.read_text(encoding="utf-8")

    return arg

def _start_timer(seconds: float) -> tuple[threading.Event, threading.Timer]:
    cancel = threading.Event()
    timer = threading.Timer(seconds, cancel.set)
    timer.daemon = True
    timer.start()
    return cancel, timer

def report_error(exc: KestrelError) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    tb = getattr(exc, "py_trace", None)
    if debug_py_trace_enabled() and tb is not None:
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_tb(tb)), file=sys.stderr, end="")

def main(argv: Optional[List[str]] = None) -> int:
    scoped = False
    timeout: Optional[float] = None
    dump: Optional[str] = None
    arg = None
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token == "--scoped":
            scoped = True
            continue

        if token in ("--tokens", "--ast"):
            dump = token[2:]
            continue

        if token == "--verbose":
            logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)
            continue

        if token.startswith("--timeout"):
            if token.startswith("--timeout="):
                raw = token.split("=", 1)[1]
            else:
                raw = next(it, None)
                if raw is None:
                    print("--timeout flag requires a value", file=sys.stderr)
                    return 2
            try:
                timeout = float(raw)
            except ValueError:
                print(f"Invalid timeout: {raw}", file=sys.stderr)
                return 2
            continue

        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        if arg is None:
            arg = token
        else:
            print(f"Unexpected argument: {token}\n{USAGE}", file=sys.stderr)
            return 2

    source = _load_source(arg)

    try:
        if dump == "tokens":
            for tok in tokenize(source):
                print(tok)
            return 0

        if dump == "ast":
            print(parse(tokenize(source)).pretty(), end="")
            return 0

        cancel = None
        timer = None
        if timeout is not None:
            cancel, timer = _start_timer(timeout)

        try:
            result = run(source, cancel=cancel, scoped=scoped)
        finally:
            if timer is not None:
                timer.cancel()
    except KestrelRuntimeError as exc:
        for value in exc.output:
            print(stringify(value))
        report_error(exc)
        return 1
    except KestrelError as exc:
        report_error(exc)
        return 1

    for line in result.lines():
        print(line)
    return 0

if __name__ == "__main__":
    sys.exit(main())
