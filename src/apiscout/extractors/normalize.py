"""
Handler snippet redaction.

Drops per-language logging/print calls and block comments, then caps the
snippet at HANDLER_MAX_LINES. Redactions are applied until nothing changes, so
normalize(normalize(x)) == normalize(x).
"""

from __future__ import annotations

import re

HANDLER_MAX_LINES = 40

ERROR_BRANCH_PLACEHOLDER = "/* Internal error handling omitted */"

_C_BLOCK_COMMENT = (re.compile(r"/\*.*?\*/", re.DOTALL), "")

_REDACTIONS: dict[str, tuple[tuple[re.Pattern[str], str], ...]] = {
    "javascript": (
        (re.compile(r"\bconsole\.(?:log|debug|info|warn|error|trace)\([^)]*\);?"), ""),
        # the placeholder must come before the block-comment rule, which strips it
        (re.compile(r"\bres\.status\(500\).*?\};?", re.DOTALL), ERROR_BRANCH_PLACEHOLDER),
        _C_BLOCK_COMMENT,
    ),
    "python": (
        (re.compile(r"\bprint\([^)]*\)"), ""),
        (re.compile(r"\b(?:logger|logging|log)\.\w+\([^)]*\)"), ""),
    ),
    "java": (
        (re.compile(r"\bSystem\.(?:out|err)\.print(?:ln|f)?\([^)]*\);?"), ""),
        _C_BLOCK_COMMENT,
    ),
    "ruby": (
        (re.compile(r"\bputs[ \t(].*$", re.MULTILINE), ""),
        (re.compile(r"^[ \t]*pp?(?:\(|[ \t]+(?![ \t=])).*$", re.MULTILINE), ""),
        (re.compile(r"^=begin\b.*?^=end\b.*?$", re.DOTALL | re.MULTILINE), ""),
    ),
}


def normalize(raw: str, language: str) -> str:
    text = raw or ""
    rules = _REDACTIONS.get(language, ())

    # run to a fixed point: one removal can expose another match
    while True:
        before = text
        for pattern, repl in rules:
            text = pattern.sub(repl, text)
        if text == before:
            break

    return truncate_lines(text)


def truncate_lines(text: str, max_lines: int = HANDLER_MAX_LINES) -> str:
    # splitlines also breaks on lone "\r", so CR-only files are capped too
    lines = text.splitlines(keepends=True)
    if len(lines) <= max_lines:
        return text
    return "".join(lines[:max_lines]).rstrip("\r\n")
