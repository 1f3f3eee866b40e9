from __future__ import annotations
from dataclasses import dataclass
import re
from typing import List, Optional, Set, Tuple

from .polyglot import COMMENT_CLOSE, COMMENT_OPEN

# Static checks for the two readings of a preamble:
#   - C# block-comment grammar (csc.exe must skip the whole preamble)
#   - cmd.exe batch structure (blocks, labels, no fall-through into C#)


@dataclass(frozen=True)
class LintNote:
    kind: str   # "ERROR"
    code: str
    message: str
    line: Optional[int] = None


_GOTO_RE = re.compile(r"\bgoto\s+:?(\S+)", re.IGNORECASE)
_ECHO_RE = re.compile(r"^@?echo(?:$|[\s.:])", re.IGNORECASE)


def _lines(preamble: str) -> List[str]:
    lines = preamble.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def strip_leading_comment(text: str) -> str:
    """Return ``text`` minus a leading C# block comment, the way csc.exe reads it.

    Block comments do not nest: the first close delimiter ends the comment.
    """
    if not text.startswith(COMMENT_OPEN):
        raise ValueError("text does not start with a block comment")
    end = text.find(COMMENT_CLOSE, len(COMMENT_OPEN))
    if end < 0:
        raise ValueError("unterminated block comment")
    return text[end + len(COMMENT_CLOSE):]


def check_comment_grammar(preamble: str) -> List[LintNote]:
    notes: List[LintNote] = []
    lines = _lines(preamble)
    if not lines or not lines[0].startswith(COMMENT_OPEN):
        notes.append(LintNote("ERROR", "EXF-CMT-0001",
                              f"Preamble must open with '{COMMENT_OPEN}'.", 1))
        return notes
    if lines[-1].strip() != COMMENT_CLOSE:
        notes.append(LintNote("ERROR", "EXF-CMT-0002",
                              f"Preamble must end with a '{COMMENT_CLOSE}' line.", len(lines)))
    if COMMENT_CLOSE in lines[0][len(COMMENT_OPEN):]:
        notes.append(LintNote("ERROR", "EXF-CMT-0003",
                              f"Comment closed early by '{COMMENT_CLOSE}'.", 1))
    for no, line in enumerate(lines[1:-1], start=2):
        if COMMENT_CLOSE in line:
            notes.append(LintNote("ERROR", "EXF-CMT-0003",
                                  f"Comment closed early by '{COMMENT_CLOSE}'.", no))
    return notes


def _bare(line: str) -> str:
    """Drop quoted text and ^-escaped characters; what is left is cmd syntax."""
    out: List[str] = []
    in_q = False
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "^" and not in_q:
            i += 2
            continue
        if ch == '"':
            in_q = not in_q
        elif not in_q:
            out.append(ch)
        i += 1
    return "".join(out)


def _body(lines: List[str]) -> List[Tuple[int, str]]:
    # first and last lines are the delimiters
    return [(no, ln) for no, ln in enumerate(lines[1:-1], start=2)]


def check_batch_syntax(preamble: str) -> List[LintNote]:
    notes: List[LintNote] = []
    lines = _lines(preamble)
    body = _body(lines)

    labels: Set[str] = {"eof"}
    gotos: List[Tuple[int, str]] = []
    depth = 0
    last_cmd: Optional[Tuple[int, str]] = None

    for no, raw in body:
        text = raw.strip()
        if not text or text.startswith("::") or text.lower().startswith("rem "):
            continue
        if text.startswith(":"):
            labels.add(text[1:].split()[0].lower() if text[1:].strip() else "")
            continue
        last_cmd = (no, text)
        bare = _bare(text)
        for m in _GOTO_RE.finditer(bare):
            gotos.append((no, m.group(1).lower()))
        if _ECHO_RE.match(bare):
            if depth > 0 and ")" in bare:
                notes.append(LintNote("ERROR", "EXF-BAT-0002",
                                      "Unescaped ')' in echo inside a block ends the block early.", no))
            continue
        for ch in bare:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth < 0:
                    notes.append(LintNote("ERROR", "EXF-BAT-0001",
                                          "Unbalanced ')' in batch block.", no))
                    depth = 0

    if depth != 0:
        notes.append(LintNote("ERROR", "EXF-BAT-0001",
                              f"{depth} batch block(s) left open.", None))

    for no, target in gotos:
        if target not in labels:
            notes.append(LintNote("ERROR", "EXF-BAT-0003",
                                  f"goto target ':{target}' is not defined.", no))

    if last_cmd is None:
        notes.append(LintNote("ERROR", "EXF-BAT-0004",
                              "Preamble has no batch commands.", None))
    else:
        no, text = last_cmd
        low = text.lower()
        if not (low == "goto :eof" or low.startswith("exit")):
            notes.append(LintNote("ERROR", "EXF-BAT-0004",
                                  "Last command must leave the script before the comment close.", no))
    return notes


def lint_preamble(preamble: str) -> List[LintNote]:
    return check_comment_grammar(preamble) + check_batch_syntax(preamble)


def lint_artifact(artifact: str) -> List[LintNote]:
    from .composer import split_artifact

    preamble, _source = split_artifact(artifact)
    return lint_preamble(preamble)
