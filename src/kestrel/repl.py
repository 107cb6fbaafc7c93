"""Interactive REPL for Kestrel, powered by prompt_toolkit."""

from __future__ import annotations

import re
import signal
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .eval.common import stringify
from .lexer_rd import LexError, UnterminatedCommentError, UnterminatedStringError, tokenize
from .repl_highlight import KestrelLexer
from .runner import report_error, run
from .token_types import TT
from .types import Frame, KestrelError, KestrelRuntimeError
from .utils import debug_py_trace_enabled, format_env, parse_flag, set_debug_py_trace

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/env": ("Show current variable bindings", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
    "/scoped": ("Toggle block-scoped environments", "[on|off]"),
}

_DEPTH_OPEN = {TT.LPAR, TT.LBRACE}
_DEPTH_CLOSE = {TT.RPAR, TT.RBRACE}


@dataclass
class ReplSession:
    """State that survives between inputs."""
    frame: Frame = field(default_factory=Frame)
    scoped: bool = False


def open_depth(text: str) -> int:
    """Count of unclosed '(' and '{' in *text*; -1 if it cannot be lexed."""
    try:
        tokens = tokenize(text)
    except (UnterminatedStringError, UnterminatedCommentError):
        return 1
    except LexError:
        return -1

    depth = 0
    for tok in tokens:
        if tok.type in _DEPTH_OPEN:
            depth += 1
        elif tok.type in _DEPTH_CLOSE:
            depth = max(depth - 1, 0)
    return depth


def needs_more_input(text: str) -> bool:
    """True while braces, parentheses, a string or a block comment are still open."""
    return open_depth(text) > 0


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _toggle(arg: str, current: bool) -> bool | None:
    if arg == "":
        return not current
    return parse_flag(arg)


def handle_slash(line: str, session: ReplSession) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/env":
        for line_out in format_env(session.frame.snapshot()):
            print(line_out)
        return True

    if cmd == "/py-traceback":
        enabled = _toggle(arg, debug_py_trace_enabled())
        if enabled is None:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        set_debug_py_trace(enabled)
        print(f"Python traceback: {'on' if enabled else 'off'}")
        return True

    if cmd == "/scoped":
        enabled = _toggle(arg, session.scoped)
        if enabled is None:
            print("Usage: /scoped [on|off]", file=sys.stderr)
            return True

        session.scoped = enabled
        print(f"Block scoping: {'on' if enabled else 'off'}")
        return True

    if cmd == "/reset":
        session.frame = Frame()
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def _compute_indent(text: str) -> str:
    """Indent continuation lines four spaces per open brace/paren."""
    return " " * (4 * max(open_depth(text), 0))


@contextmanager
def _sigint_cancels(cancel: threading.Event) -> Iterator[None]:
    """Route Ctrl-C to the cancel event while a program runs."""
    try:
        previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    except ValueError:
        # Not on the main thread; leave the default handler alone.
        yield
        return

    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def eval_input(text: str, session: ReplSession) -> None:
    """Run one submission against the session frame and print its output."""
    cancel = threading.Event()

    try:
        with _sigint_cancels(cancel):
            result = run(text, env=session.frame, cancel=cancel, scoped=session.scoped)
    except KestrelRuntimeError as exc:
        for value in exc.output:
            print(stringify(value))
        report_error(exc)
        return
    except KestrelError as exc:
        report_error(exc)
        return

    for line in result.lines():
        print(line)


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    state = ReplSession()

    history = InMemoryHistory()
    lexer = KestrelLexer()

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        # Slash commands and complete programs submit immediately.
        if text.lstrip().startswith("/") or not needs_more_input(text):
            buf.validate_and_handle()
            return

        buf.insert_text("\n" + _compute_indent(text))

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("kestrel repl: Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        # Slash command?
        if handle_slash(text, state):
            continue

        eval_input(text, state)


if __name__ == "__main__":
    repl()
