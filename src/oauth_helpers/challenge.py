# Copyright (c) 2026 Dedalus Labs, Inc. and its contributors
# SPDX-License-Identifier: MIT

"""WWW-Authenticate challenge parsing (RFC 7235 §4.1, RFC 9728 §5.1).

A single header value may carry several challenges:

    Basic realm="web", Bearer realm="api" scope="read write"

Parameters inside a challenge may be separated by commas or by plain
whitespace, and quoted values may themselves contain commas and spaces.
A bare token followed by a parameter starts a new challenge; a bare token
directly after a parameter-less scheme is that scheme's token68.

Example:
    >>> challenges = parse_www_authenticate('Bearer resource_metadata="https://mcp.example.com/prm"')
    >>> find_resource_metadata_url(challenges)
    'https://mcp.example.com/prm'
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import re

from .exceptions import ParseError


_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_TOKEN68_RE = re.compile(r"^[A-Za-z0-9\-._~+/]+=*$")
_WHITESPACE = " \t"
_DELIMITERS = ' \t,="'


@dataclass(slots=True)
class WWWAuthenticateChallenge:
    """One authentication challenge from a WWW-Authenticate header.

    Parameter names are lower-cased (they are case-insensitive per RFC 7235)
    and values are unquoted. Vendor parameters are kept as-is in ``params``.
    """

    scheme: str
    params: dict[str, str] = field(default_factory=dict)
    token68: str | None = None

    @property
    def parameters(self) -> dict[str, str]:
        return self.params

    @property
    def resource_metadata(self) -> str | None:
        return self.params.get("resource_metadata")

    @property
    def scope(self) -> str | None:
        return self.params.get("scope")

    @property
    def error(self) -> str | None:
        return self.params.get("error")

    @property
    def error_description(self) -> str | None:
        return self.params.get("error_description")

    def is_scheme(self, scheme: str) -> bool:
        """Case-insensitive scheme comparison."""
        return self.scheme.lower() == scheme.lower()


@dataclass(slots=True)
class _Item:
    kind: str  # "token" | "param" | "blob"
    text: str
    value: str = ""
    comma_before: bool = False


def _skip_whitespace(header: str, pos: int) -> int:
    while pos < len(header) and header[pos] in _WHITESPACE:
        pos += 1
    return pos


def _read_quoted(header: str, pos: int) -> tuple[str, int]:
    """Read a quoted-string starting at the opening quote; return (value, end)."""
    chars: list[str] = []
    pos += 1
    while pos < len(header):
        ch = header[pos]
        if ch == "\\" and pos + 1 < len(header):
            chars.append(header[pos + 1])
            pos += 2
            continue
        if ch == '"':
            return "".join(chars), pos + 1
        chars.append(ch)
        pos += 1
    raise ParseError("unterminated quoted string in WWW-Authenticate header")


def _lex(header: str) -> list[_Item]:
    items: list[_Item] = []
    pos = 0
    comma = False
    n = len(header)

    while pos < n:
        ch = header[pos]
        if ch == ",":
            comma = True
            pos += 1
            continue
        if ch in _WHITESPACE:
            pos += 1
            continue
        if ch in '="':
            raise ParseError(f"unexpected {ch!r} at position {pos} in WWW-Authenticate header")

        start = pos
        while pos < n and header[pos] not in _DELIMITERS:
            pos += 1
        word = header[start:pos]

        after = _skip_whitespace(header, pos)
        if after >= n or header[after] != "=":
            items.append(_Item("token", word, comma_before=comma))
            comma = False
            continue

        # "abc==" is token68 padding, "key=" followed by a delimiter is an empty value
        eq_end = after
        while eq_end < n and header[eq_end] == "=":
            eq_end += 1
        value_start = _skip_whitespace(header, eq_end)
        if eq_end - after > 1 or value_start >= n or header[value_start] == ",":
            items.append(_Item("blob", word + header[after:eq_end], comma_before=comma))
            comma = False
            pos = eq_end
            continue

        if header[value_start] == '"':
            value, pos = _read_quoted(header, value_start)
        else:
            pos = value_start
            while pos < n and header[pos] not in ' \t,"':
                pos += 1
            value = header[value_start:pos]
        items.append(_Item("param", word, value, comma_before=comma))
        comma = False

    return items


def parse_www_authenticate(header: str) -> list[WWWAuthenticateChallenge]:
    """Parse a WWW-Authenticate header value into challenges, in header order.

    Args:
        header: Raw header value

    Returns:
        One challenge per scheme. Duplicate parameter names within a challenge
        keep their first value.

    Raises:
        ParseError: If the header is empty, has no scheme, places a parameter
            before any scheme, or contains an unterminated quoted string
    """
    if not header or not header.strip():
        raise ParseError("empty WWW-Authenticate header")

    items = _lex(header)
    challenges: list[WWWAuthenticateChallenge] = []
    current: WWWAuthenticateChallenge | None = None

    for index, item in enumerate(items):
        if item.kind == "param":
            if current is None:
                raise ParseError(f"parameter {item.text!r} precedes any auth scheme")
            if not _TOKEN_RE.match(item.text):
                raise ParseError(f"invalid parameter name {item.text!r}")
            current.params.setdefault(item.text.lower(), item.value)
            continue

        following = items[index + 1] if index + 1 < len(items) else None
        takes_token68 = (
            current is not None
            and not current.params
            and current.token68 is None
            and not item.comma_before
            and (following is None or following.kind != "param")
            and _TOKEN68_RE.match(item.text) is not None
        )
        if takes_token68:
            assert current is not None
            current.token68 = item.text
            continue

        if item.kind == "blob":
            # Only "key=" with a single '=' can be an empty parameter
            key = item.text[:-1]
            if current is None or item.text.endswith("==") or not _TOKEN_RE.match(key):
                raise ParseError(f"unexpected {item.text!r} in WWW-Authenticate header")
            current.params.setdefault(key.lower(), "")
            continue

        if not _TOKEN_RE.match(item.text):
            raise ParseError(f"invalid auth scheme {item.text!r}")
        current = WWWAuthenticateChallenge(scheme=item.text)
        challenges.append(current)

    if not challenges:
        raise ParseError("no auth scheme found in WWW-Authenticate header")
    return challenges


def find_resource_metadata_url(challenges: Sequence[WWWAuthenticateChallenge] | None) -> str:
    """Return the first non-empty ``resource_metadata`` parameter, or ``""`` if none."""
    for challenge in challenges or ():
        value = challenge.params.get("resource_metadata")
        if value:
            return value
    return ""


def find_required_scopes(challenges: Sequence[WWWAuthenticateChallenge] | None) -> list[str]:
    """Return the tokens of the first ``scope`` parameter, in order."""
    for challenge in challenges or ():
        value = challenge.params.get("scope")
        if value is not None:
            return value.split()
    return []


__all__ = [
    "WWWAuthenticateChallenge",
    "find_required_scopes",
    "find_resource_metadata_url",
    "parse_www_authenticate",
]
