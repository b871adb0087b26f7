#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
PL/SQL source scanner for line coverage.

Splits stored source into tokens and finds, for every physical line, the
first token that starts a statement inside an executable section. Lines
holding such a token are executable and get a counter slot; everything
else (blank lines, comments, declarations, END IF, continuation lines of
multi-line statements) is non-executable.

Rules:
- BEGIN opens a body, DECLARE opens a declaration section, END closes the
  innermost block (END IF / END LOOP close nothing, END CASE closes a CASE).
- A statement starts at the first token after ';', BEGIN, THEN, ELSE or a
  block LOOP, unless that token is END, ELSIF, ELSE, WHEN or EXCEPTION.
- THEN and ELSE inside a CASE expression or inside a SQL statement (MERGE
  ... WHEN MATCHED THEN UPDATE) do not start statements.
- <<label>> tokens are skipped.
"""

import logging
import re
from collections import namedtuple
from dataclasses import dataclass
from typing import Dict, List

from plsql_spec.core.models import LineInfo, LineMap

logger = logging.getLogger(__name__)

Token = namedtuple("Token", ["kind", "text", "line", "col"])

WORD = "word"
QUOTED = "quoted"
STRING = "string"
NUMBER = "number"
OP = "op"

TWO_CHAR_OPS = (":=", "=>", "..", "<<", ">>", "||", "**", "<>", "!=", "<=", ">=", "^=", "~=")

# Closing delimiters for q'[...]' style literals
Q_CLOSERS = {"[": "]", "{": "}", "(": ")", "<": ">"}

# Tokens that continue a compound statement rather than start a new one
CONTINUATION_KEYWORDS = frozenset(["END", "ELSIF", "ELSE", "WHEN", "EXCEPTION"])

# Statements whose body is SQL, where THEN/ELSE never start a PL/SQL statement
SQL_STATEMENTS = frozenset(["SELECT", "INSERT", "UPDATE", "DELETE", "MERGE", "WITH"])

BODY = "body"
DECLARE = "declare"
CASE_STMT = "case_stmt"
CASE_EXPR = "case_expr"

WRAPPED_HEADER = re.compile(r"\swrapped\s*$", re.IGNORECASE)


def split_lines(text: str) -> List[str]:
    """Split source text into physical lines, keeping line terminators."""
    return text.splitlines(keepends=True)


def is_wrapped(lines: List[str]) -> bool:
    """Check for wrap utility output, which cannot be instrumented."""
    if len(lines) < 2:
        return False
    return bool(WRAPPED_HEADER.search(lines[0])) and lines[1].strip().lower().startswith(
        "a000000"
    )


def tokenize(text: str) -> List[Token]:
    """
    Tokenize PL/SQL source.

    Comments and whitespace are dropped. Each token records the 1-based
    line and the 0-based column where it starts.
    """
    tokens = []
    n = len(text)
    i = 0
    line = 1
    line_start = 0

    def advance(start, end):
        nonlocal line, line_start
        newlines = text.count("\n", start, end)
        if newlines:
            line += newlines
            line_start = text.rfind("\n", start, end) + 1

    while i < n:
        ch = text[i]
        if ch == "\n":
            line += 1
            line_start = i + 1
            i += 1
            continue
        if ch.isspace():
            i += 1
            continue

        col = i - line_start
        tok_line = line

        if text.startswith("--", i):
            end = text.find("\n", i)
            i = n if end < 0 else end
            continue

        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end < 0 else end + 2
            advance(i, end)
            i = end
            continue

        if ch in "qQ" and i + 2 < n and text[i + 1] == "'":
            closer = Q_CLOSERS.get(text[i + 2], text[i + 2])
            end = text.find(closer + "'", i + 3)
            end = n if end < 0 else end + 2
            tokens.append(Token(STRING, text[i:end], tok_line, col))
            advance(i, end)
            i = end
            continue

        if ch == "'":
            j = i + 1
            while True:
                k = text.find("'", j)
                if k < 0:
                    end = n
                    break
                if k + 1 < n and text[k + 1] == "'":
                    j = k + 2
                    continue
                end = k + 1
                break
            tokens.append(Token(STRING, text[i:end], tok_line, col))
            advance(i, end)
            i = end
            continue

        if ch == '"':
            end = text.find('"', i + 1)
            end = n if end < 0 else end + 1
            tokens.append(Token(QUOTED, text[i:end], tok_line, col))
            advance(i, end)
            i = end
            continue

        if ch.isalpha() or ch == "$":
            j = i + 1
            while j < n and (text[j].isalnum() or text[j] in "_$#"):
                j += 1
            tokens.append(Token(WORD, text[i:j], tok_line, col))
            i = j
            continue

        if ch.isdigit() or (ch == "." and i + 1 < n and text[i + 1].isdigit()):
            j = i
            while j < n and text[j].isdigit():
                j += 1
            if j < n and text[j] == "." and not text.startswith("..", j):
                j += 1
                while j < n and text[j].isdigit():
                    j += 1
            if j < n and text[j] in "eE":
                k = j + 1
                if k < n and text[k] in "+-":
                    k += 1
                if k < n and text[k].isdigit():
                    j = k
                    while j < n and text[j].isdigit():
                        j += 1
            tokens.append(Token(NUMBER, text[i:j], tok_line, col))
            i = j
            continue

        two = text[i : i + 2]
        if two in TWO_CHAR_OPS:
            tokens.append(Token(OP, two, tok_line, col))
            i += 2
            continue

        tokens.append(Token(OP, ch, tok_line, col))
        i += 1

    return tokens


def find_statement_starts(tokens: List[Token]) -> List[Token]:
    """Return the tokens that start a statement in an executable section."""
    starts = []
    stack = []
    expect = False
    in_sql = False
    prev = None
    label_start = None
    i = 0
    count = len(tokens)

    while i < count:
        tok = tokens[i]
        upper = tok.text.upper() if tok.kind == WORD else tok.text

        in_exec = bool(stack) and stack[-1] in (BODY, CASE_STMT)

        if tok.kind == OP and tok.text == "<<":
            # <<label>> belongs to the statement after it
            if expect and in_exec and label_start is None:
                label_start = tok
            while i < count and not (tokens[i].kind == OP and tokens[i].text == ">>"):
                i += 1
            i += 1
            continue

        is_start = False
        if expect and in_exec:
            expect = False
            if not (tok.kind == WORD and upper in CONTINUATION_KEYWORDS):
                is_start = True
                starts.append(label_start or tok)
                in_sql = upper in SQL_STATEMENTS
            label_start = None

        if tok.kind == OP:
            if tok.text == ";":
                expect = True
                in_sql = False
            prev = tok.text
            i += 1
            continue

        if tok.kind != WORD:
            prev = None
            i += 1
            continue

        top = stack[-1] if stack else None

        if upper == "CASE":
            if prev != "END":
                stack.append(CASE_STMT if is_start else CASE_EXPR)
        elif upper == "END":
            nxt = tokens[i + 1] if i + 1 < count else None
            nxt_upper = nxt.text.upper() if nxt is not None and nxt.kind == WORD else None
            if nxt_upper in ("IF", "LOOP"):
                pass
            elif nxt_upper == "CASE":
                if top in (CASE_STMT, CASE_EXPR):
                    stack.pop()
            elif stack:
                stack.pop()
        elif in_sql:
            # Inside SQL only CASE expressions matter
            pass
        elif upper == "BEGIN":
            if top == DECLARE:
                stack.pop()
            stack.append(BODY)
            expect = True
        elif upper == "DECLARE":
            stack.append(DECLARE)
        elif upper in ("THEN", "ELSE"):
            if top != CASE_EXPR:
                expect = True
        elif upper == "LOOP":
            if prev != "END":
                expect = True
        elif upper == "EXCEPTION":
            expect = False

        prev = upper
        i += 1

    return starts


@dataclass(frozen=True)
class SourceAnalysis:
    """Line map plus the column where each executable line gets its counter."""

    line_map: LineMap
    insert_columns: Dict[int, int]


def analyze(lines: List[str]) -> SourceAnalysis:
    """
    Classify the physical lines of an object's source.

    Args:
        lines: Source lines, each keeping its terminator

    Returns:
        SourceAnalysis with slot-ids numbered 1..n in line order
    """
    tokens = tokenize("".join(lines))
    insert_columns = {}
    for tok in find_statement_starts(tokens):
        insert_columns.setdefault(tok.line, tok.col)

    infos = []
    slot = 0
    for number in range(1, len(lines) + 1):
        if number in insert_columns:
            slot += 1
            infos.append(LineInfo(number, True, slot))
        else:
            infos.append(LineInfo(number, False, None))

    logger.debug(f"{slot} executable lines out of {len(lines)}")
    return SourceAnalysis(LineMap(tuple(infos)), insert_columns)
