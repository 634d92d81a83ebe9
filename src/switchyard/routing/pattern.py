"""Path templates — parsing, compilation to regex, and reverse URL building.

Template syntax::

    /users              literal
    /users/:id          named parameter, one segment
    /users/:id(\\d+)     named parameter with a custom pattern
    /files/(.*)         unnamed parameter, keyed by position ("0", "1", ...)
    /posts/:slug?       optional (the preceding "/" is optional with it)
    /docs/:path*        zero or more segments
    /docs/:path+        one or more segments
    /price\\:usd         backslash escapes the next character

A compiled pattern is immutable. Prefixing a route compiles a new one.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias
from urllib.parse import quote

from switchyard.errors import ConfigurationError, MissingParameterError, URLBuildError

DEFAULT_PATTERN = r"[^/#?]+?"

_NAME = re.compile(r"\w+")
_PREFIX_CHARS = "./"
_MODIFIERS = "?*+"


@dataclass(frozen=True, slots=True)
class ParamKey:
    """A parameter parsed from a path template.

    ``name`` is the parameter name, or its position for unnamed groups.
    ``prefix`` is the ``/`` or ``.`` that precedes it and is dropped along
    with it when the parameter is optional and absent.
    """

    name: str
    pattern: str = DEFAULT_PATTERN
    prefix: str = ""
    modifier: str = ""

    @property
    def optional(self) -> bool:
        return self.modifier in ("?", "*")

    @property
    def repeat(self) -> bool:
        return self.modifier in ("*", "+")


Token: TypeAlias = str | ParamKey


def _read_group(template: str, start: int) -> tuple[str, int]:
    """Read a parenthesised pattern starting at *start*.

    Returns the inner pattern and the index just past the closing paren.
    """
    depth = 1
    i = start + 1
    pattern = ""
    while i < len(template):
        char = template[i]
        if char == "\\":
            pattern += template[i : i + 2]
            i += 2
            continue
        if char == ")":
            depth -= 1
            if depth == 0:
                i += 1
                break
        elif char == "(":
            depth += 1
            if template[i + 1 : i + 2] != "?":
                msg = f"Capturing groups are not allowed at {i} in path {template!r}"
                raise ConfigurationError(msg)
        pattern += char
        i += 1
    if depth:
        msg = f"Unbalanced pattern at {start} in path {template!r}"
        raise ConfigurationError(msg)
    if not pattern:
        msg = f"Missing pattern at {start} in path {template!r}"
        raise ConfigurationError(msg)
    if pattern.startswith("?"):
        msg = f'Pattern cannot start with "?" at {start} in path {template!r}'
        raise ConfigurationError(msg)
    return pattern, i


def parse(template: str) -> list[Token]:
    """Split a path template into literal strings and ``ParamKey`` tokens.

    Raises ``ConfigurationError`` for malformed templates.
    """
    tokens: list[Token] = []
    literal = ""
    position = 0
    i = 0
    while i < len(template):
        char = template[i]
        if char == "\\":
            literal += template[i + 1 : i + 2]
            i += 2
            continue
        if char not in ":(":
            literal += char
            i += 1
            continue

        name: str | None = None
        if char == ":":
            match = _NAME.match(template, i + 1)
            if match is None:
                msg = f"Missing parameter name at {i} in path {template!r}"
                raise ConfigurationError(msg)
            name = match.group()
            i = match.end()

        pattern = DEFAULT_PATTERN
        if i < len(template) and template[i] == "(":
            pattern, i = _read_group(template, i)

        if name is None:
            name = str(position)
            position += 1

        modifier = ""
        if i < len(template) and template[i] in _MODIFIERS:
            modifier = template[i]
            i += 1

        prefix = ""
        if literal and literal[-1] in _PREFIX_CHARS:
            prefix = literal[-1]
            literal = literal[:-1]
        if literal:
            tokens.append(literal)
            literal = ""
        tokens.append(ParamKey(name=name, pattern=pattern, prefix=prefix, modifier=modifier))

    if literal:
        tokens.append(literal)
    return tokens


def _key_regex(key: ParamKey) -> str:
    prefix = re.escape(key.prefix)
    if key.repeat:
        body = f"(?:{prefix}((?:{key.pattern})(?:{prefix}(?:{key.pattern}))*))"
        return body + ("?" if key.optional else "")
    if key.optional:
        return f"(?:{prefix}({key.pattern}))?"
    return f"{prefix}({key.pattern})"


def _tokens_to_regex(tokens: list[Token], *, end: bool, strict: bool) -> str:
    parts = ["^"]
    for token in tokens:
        parts.append(re.escape(token) if isinstance(token, str) else _key_regex(token))

    if end:
        if not strict:
            parts.append("/?")
        parts.append("$")
    else:
        last = tokens[-1] if tokens else None
        end_delimited = last is None or (isinstance(last, str) and last.endswith("/"))
        if not strict:
            parts.append("(?:/(?=$))?")
        if not end_delimited:
            parts.append("(?=/|$)")
    return "".join(parts)


@dataclass(frozen=True, slots=True)
class PathPattern:
    """A compiled path matcher.

    ``source`` is the template (or the regex it was built from);
    ``keys`` lists parameters in capture-group order.
    """

    source: str | re.Pattern[str]
    regex: re.Pattern[str]
    keys: tuple[ParamKey, ...]

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(key.name for key in self.keys)

    def test(self, path: str) -> bool:
        return self.regex.search(path) is not None

    def captures(self, path: str) -> list[str | None]:
        """Return the capture groups for *path*, or ``[]`` if it doesn't match."""
        match = self.regex.search(path)
        if match is None:
            return []
        return list(match.groups())


def _regex_keys(regex: re.Pattern[str]) -> tuple[ParamKey, ...]:
    names = {index: name for name, index in regex.groupindex.items()}
    keys: list[ParamKey] = []
    position = 0
    for index in range(1, regex.groups + 1):
        name = names.get(index)
        if name is None:
            name = str(position)
            position += 1
        keys.append(ParamKey(name=name, pattern=""))
    return tuple(keys)


def compile_pattern(
    source: str | re.Pattern[str],
    *,
    end: bool = True,
    sensitive: bool = False,
    strict: bool = False,
) -> PathPattern:
    """Compile a template (or take a regex as-is) into a ``PathPattern``.

    Args:
        source: Path template, or a pre-compiled regular expression.
        end: Anchor at the end of the path. ``False`` matches any path
            that starts with the template at a segment boundary.
        sensitive: Match case-sensitively.
        strict: Treat a trailing slash as significant.
    """
    if isinstance(source, re.Pattern):
        return PathPattern(source=source, regex=source, keys=_regex_keys(source))

    tokens = parse(source)
    flags = 0 if sensitive else re.IGNORECASE
    regex = re.compile(_tokens_to_regex(tokens, end=end, strict=strict), flags)
    keys = tuple(token for token in tokens if isinstance(token, ParamKey))
    return PathPattern(source=source, regex=regex, keys=keys)


def join_prefix(
    prefix: str,
    path: str | re.Pattern[str],
    *,
    strict: bool = False,
) -> str | re.Pattern[str]:
    """Prepend *prefix* to a path template or regex.

    A bare ``/`` collapses into the prefix unless *strict* is set, so
    ``/api`` + ``/`` is ``/api`` rather than ``/api/``.
    """
    if not prefix:
        return path
    if isinstance(path, re.Pattern):
        body = path.pattern.removeprefix("^")
        return re.compile(f"^{re.escape(prefix)}{body}", path.flags)
    if path != "/" or strict:
        return f"{prefix}{path}"
    return prefix


def has_params(template: str) -> bool:
    """Whether *template* declares any parameters."""
    return any(isinstance(token, ParamKey) for token in parse(template))


def build_url(template: str | re.Pattern[str], params: Mapping[str, Any] | None = None) -> str:
    """Substitute *params* into *template*.

    Values are percent-encoded and must fit their parameter's pattern.
    Repeated parameters (``*``/``+``) accept a list of values.

    Raises:
        MissingParameterError: A required parameter has no value.
        URLBuildError: A value doesn't fit its pattern, or *template*
            is a regular expression.
    """
    if isinstance(template, re.Pattern):
        msg = f"Cannot build a URL from regular expression {template.pattern!r}"
        raise URLBuildError(msg)

    params = params or {}
    parts: list[str] = []
    for token in parse(template):
        if isinstance(token, str):
            parts.append(token)
            continue

        value = params.get(token.name)
        if token.repeat and isinstance(value, (list, tuple)):
            values = list(value)
        elif value is None or value == "":
            values = []
        else:
            values = [value]

        if not values:
            if token.optional:
                continue
            raise MissingParameterError(token.name, template)

        segments: list[str] = []
        for item in values:
            segment = quote(str(item), safe="")
            if not re.fullmatch(token.pattern, segment, re.IGNORECASE):
                msg = (
                    f"Expected {token.name!r} to match {token.pattern!r}, "
                    f"got {segment!r} in path {template!r}"
                )
                raise URLBuildError(msg)
            segments.append(segment)
        parts.append(token.prefix + token.prefix.join(segments))
    return "".join(parts)
