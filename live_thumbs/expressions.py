"""
Restricted expression language for dynamic overlay text.

Expressions can only read whitelisted stream metadata fields and call a
fixed set of helper functions. There is no access to Python builtins,
attributes or the host environment.

    upper(title) + " - " + now("%H:%M")
    "LIVE: " + title
    str(is_live_content)

Grammar:

    expr := term ("+" term)*
    term := STRING | NUMBER | true | false | NAME | NAME "(" args ")" | "(" expr ")"
"""

import re
from datetime import datetime

from .errors import ExpressionError, TypeMismatchError
from .session import METADATA_FIELDS

_TOKEN_RE = re.compile(r"""
    \s*(?:
        (?P<number>\d+(?:\.\d+)?)
      | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
      | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<op>[+(),])
    )""", re.VERBOSE)

_ESCAPE_RE = re.compile(r"\\(.)")


def _tokenize(body):
    tokens = []
    pos = 0
    body = body.rstrip()
    while pos < len(body):
        match = _TOKEN_RE.match(body, pos)
        if not match:
            raise ExpressionError(f"unexpected character {body[pos:].lstrip()[:1]!r} at {pos}")
        kind = match.lastgroup
        text = match.group(kind)
        if kind == "number":
            tokens.append(("value", float(text) if "." in text else int(text)))
        elif kind == "string":
            tokens.append(("value", _ESCAPE_RE.sub(r"\1", text[1:-1])))
        else:
            tokens.append((kind, text))
        pos = match.end()
    return tokens


def _to_text(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _require_str(name, value):
    if not isinstance(value, str):
        raise TypeMismatchError(f"{name}() expects a string, got {type(value).__name__}")
    return value


class _Evaluator:
    """Recursive descent evaluator over a token list."""

    def __init__(self, tokens, metadata, clock):
        self.tokens = tokens
        self.index = 0
        self.metadata = metadata
        self.functions = {
            "upper": lambda s: _require_str("upper", s).upper(),
            "lower": lambda s: _require_str("lower", s).lower(),
            "str": _to_text,
            "now": lambda fmt="%H:%M:%S": clock().strftime(_require_str("now", fmt)),
        }

    def peek(self):
        return self.tokens[self.index] if self.index < len(self.tokens) else (None, None)

    def take(self, kind=None, text=None):
        token = self.peek()
        if token[0] is None:
            raise ExpressionError("unexpected end of expression")
        if (kind and token[0] != kind) or (text and token[1] != text):
            raise ExpressionError(f"expected {text or kind!r}, got {token[1]!r}")
        self.index += 1
        return token

    def parse(self):
        if not self.tokens:
            raise ExpressionError("empty expression")
        value = self.expr()
        if self.index != len(self.tokens):
            raise ExpressionError(f"unexpected {self.peek()[1]!r}")
        return value

    def expr(self):
        value = self.term()
        while self.peek() == ("op", "+"):
            self.take()
            value = self.add(value, self.term())
        return value

    @staticmethod
    def add(left, right):
        if isinstance(left, str) and isinstance(right, str):
            return left + right
        numeric = (int, float)
        if (isinstance(left, numeric) and isinstance(right, numeric)
                and not isinstance(left, bool) and not isinstance(right, bool)):
            return left + right
        raise TypeMismatchError(
            f"cannot add {type(left).__name__} and {type(right).__name__}"
        )

    def term(self):
        kind, text = self.take()
        if kind == "value":
            return text
        if kind == "op" and text == "(":
            value = self.expr()
            self.take("op", ")")
            return value
        if kind == "name":
            if self.peek() == ("op", "("):
                return self.call(text)
            if text == "true":
                return True
            if text == "false":
                return False
            if text not in METADATA_FIELDS or text not in self.metadata:
                raise ExpressionError(f"unknown name {text!r}")
            return self.metadata[text]
        raise ExpressionError(f"unexpected {text!r}")

    def call(self, name):
        function = self.functions.get(name)
        if function is None:
            raise ExpressionError(f"unknown function {name!r}")
        self.take("op", "(")
        args = []
        if self.peek() != ("op", ")"):
            args.append(self.expr())
            while self.peek() == ("op", ","):
                self.take()
                args.append(self.expr())
        self.take("op", ")")
        try:
            return function(*args)
        except TypeError as e:
            if isinstance(e, TypeMismatchError):
                raise
            raise ExpressionError(f"bad arguments to {name}(): {e}") from e


def evaluate(body: str, metadata, clock=datetime.now):
    """
    Evaluate an expression against a metadata mapping.

    Args:
        body: Expression source
        metadata: Mapping of whitelisted field names to values
        clock: Callable returning the current datetime, used by now()

    Returns:
        The resulting value. It is not necessarily a string; callers that
        need text must check.
    """
    if not isinstance(body, str):
        raise ExpressionError("expression body must be a string")
    return _Evaluator(_tokenize(body), metadata, clock).parse()
