from __future__ import annotations

import pytest

from kestrel.repl import ReplSession, _normalize, eval_input, handle_slash, needs_more_input, open_depth
from kestrel.repl_highlight import GROUP_STYLE, _highlight_line
from kestrel.types import KNumber, KString
from kestrel.utils import DEBUG_PY_TRACE_ENV, debug_py_trace_enabled, format_env, parse_flag


@pytest.mark.parametrize(
    "text, depth",
    [
        pytest.param("print(1);", 0, id="complete"),
        pytest.param("if (x) {", 1, id="open-brace"),
        pytest.param("while (a) {\n  if (b) {", 2, id="nested-open"),
        pytest.param("print((1 + 2)", 1, id="open-paren"),
        pytest.param("if (x) { }", 0, id="closed-block"),
        pytest.param('print("abc', 1, id="open-string"),
        pytest.param("/* still typing", 1, id="open-comment"),
        pytest.param("}}", 0, id="extra-close-clamped"),
        pytest.param("var x = @", -1, id="lex-error"),
    ],
)
def test_open_depth(text: str, depth: int) -> None:
    assert open_depth(text) == depth
    assert needs_more_input(text) is (depth > 0)


def test_eval_input_keeps_session_state(capsys: pytest.CaptureFixture[str]) -> None:
    session = ReplSession()

    eval_input("var total = 40;", session)
    eval_input("total = total + 2; print(total);", session)

    assert capsys.readouterr().out == "42\n"
    assert session.frame.get("total") == KNumber(42.0)


def test_eval_input_reports_errors_and_continues(capsys: pytest.CaptureFixture[str]) -> None:
    session = ReplSession()

    eval_input('print("a"); print(b);', session)
    captured = capsys.readouterr()
    assert captured.out == "a\n"
    assert "Error: Undefined variable 'b'" in captured.err

    eval_input("print(1 +", session)
    assert "Error: Unexpected end of input" in capsys.readouterr().err

    eval_input("print(3);", session)
    assert capsys.readouterr().out == "3\n"


def test_eval_input_respects_scoped_toggle(capsys: pytest.CaptureFixture[str]) -> None:
    session = ReplSession()
    assert handle_slash("/scoped on", session)
    assert session.scoped is True

    eval_input("var x = 1; if (1) { var x = 2; } print(x);", session)
    out = capsys.readouterr().out
    assert out.splitlines()[-1] == "1"


def test_slash_env_lists_bindings(capsys: pytest.CaptureFixture[str]) -> None:
    session = ReplSession()
    session.frame.define("b", KString("hi"))
    session.frame.define("a", KNumber(1.5))

    assert handle_slash("/env", session) is True
    assert capsys.readouterr().out.splitlines() == ["a = 1.5", 'b = "hi"']


def test_slash_reset_drops_bindings(capsys: pytest.CaptureFixture[str]) -> None:
    session = ReplSession()
    session.frame.define("a", KNumber(1.0))

    assert handle_slash("/reset", session) is True
    assert session.frame.snapshot() == {}
    assert "Environment reset." in capsys.readouterr().out


@pytest.mark.parametrize(
    "line, expected",
    [
        pytest.param("/scoped", True, id="toggle"),
        pytest.param("/scoped on", True, id="on"),
        pytest.param("/scoped off", False, id="off"),
    ],
)
def test_slash_scoped(line: str, expected: bool, capsys: pytest.CaptureFixture[str]) -> None:
    session = ReplSession()
    assert handle_slash(line, session) is True
    assert session.scoped is expected
    assert f"Block scoping: {'on' if expected else 'off'}" in capsys.readouterr().out


def test_slash_py_traceback(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.delenv(DEBUG_PY_TRACE_ENV, raising=False)
    session = ReplSession()

    assert handle_slash("/py-traceback on", session)
    assert debug_py_trace_enabled() is True
    assert handle_slash("/py-traceback", session)
    assert debug_py_trace_enabled() is False
    assert capsys.readouterr().out.splitlines() == ["Python traceback: on", "Python traceback: off"]


def test_slash_bad_argument_and_unknown(capsys: pytest.CaptureFixture[str]) -> None:
    session = ReplSession()

    assert handle_slash("/scoped maybe", session) is True
    assert handle_slash("/nope", session) is True
    err = capsys.readouterr().err
    assert "Usage: /scoped [on|off]" in err
    assert "Unknown command: /nope" in err


def test_non_slash_lines_pass_through() -> None:
    assert handle_slash("print(1);", ReplSession()) is False


def test_normalize_strips_invisible_characters() -> None:
    assert _normalize("pri\u200bnt(1);\r") == "print(1);"


def test_highlight_covers_whole_line() -> None:
    line = 'var x = "s"; // note'
    fragments = _highlight_line(line)

    assert "".join(text for _, text in fragments) == line
    assert fragments[0] == (GROUP_STYLE["keyword"], "var")
    assert (GROUP_STYLE["string"], '"s"') in fragments
    assert fragments[-1] == (GROUP_STYLE["comment"], "// note")


def test_highlight_falls_back_on_lex_error() -> None:
    assert _highlight_line('print("open') == [("", 'print("open')]


@pytest.mark.parametrize(
    "raw, expected",
    [
        pytest.param("on", True, id="on"),
        pytest.param(" Yes ", True, id="yes-padded"),
        pytest.param("0", False, id="zero"),
        pytest.param("off", False, id="off"),
        pytest.param("sometimes", None, id="unknown"),
    ],
)
def test_parse_flag(raw: str, expected: object) -> None:
    assert parse_flag(raw) is expected


def test_format_env_sorts_and_formats() -> None:
    env = {"z": KNumber(2.0), "a": KString("x")}
    assert format_env(env) == ['a = "x"', "z = 2"]
