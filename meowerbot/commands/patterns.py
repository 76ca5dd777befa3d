"""
Argument patterns for commands.

A pattern is an ordered list of argument specs. Each spec is one of:
- "string": any single word
- "number": a decimal, Infinity or 0x/0o/0b numeral, parsed to a float
- "full": every remaining word, joined with spaces
- a list of strings: one of the listed words

Specs may be given in shorthand ("number", ["a", "b"]) or as a mapping
{"type": ..., "name": ..., "optional": ...}. Shorthand is normalized once
by Pattern.build().

Examples:
    ["number", "number"]
        @Bot add 2 4 -> (2.0, 4.0)
    [{"type": "string", "name": "whom"}, {"type": "full", "name": "greeting"}]
        @Bot greet Josh Hello there -> ("Josh", "Hello there")
    [{"type": "string"}, {"type": "string", "optional": True}]
        @Bot greet Josh -> ("Josh", None)
"""

import json
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

from meowerbot.errors import (
    ConfigurationError,
    MissingArgument,
    NotANumber,
    NotInSet,
    TooManyArguments,
)


class ArgumentKind(str, Enum):
    """What an argument accepts."""
    STRING = "string"
    NUMBER = "number"
    FULL = "full"
    CHOICE = "choice"


@dataclass(frozen=True)
class ArgumentSpec:
    """One argument of a pattern."""
    kind: ArgumentKind
    optional: bool = False
    name: str | None = None
    choices: tuple[str, ...] = ()

    @classmethod
    def coerce(cls, value: Any) -> "ArgumentSpec":
        """
        Normalize a shorthand declaration into an ArgumentSpec.

        Args:
            value: A kind name, a list of choices, a mapping with "type",
                "name" and "optional" keys, or an ArgumentSpec.

        Raises:
            ConfigurationError: The declaration is not understood.
        """
        if isinstance(value, ArgumentSpec):
            return value

        if isinstance(value, dict):
            if "type" not in value:
                raise ConfigurationError(f"Argument {value!r} has no type")
            unknown = set(value) - {"type", "name", "optional"}
            if unknown:
                raise ConfigurationError(
                    f"Argument {value!r} has unknown keys: {', '.join(sorted(unknown))}"
                )
            optional = value.get("optional", False)
            if not isinstance(optional, bool):
                raise ConfigurationError(
                    f"Argument {value!r} has a non-boolean optional flag"
                )
            base = cls.coerce(value["type"])
            name = value.get("name")
            return cls(
                kind=base.kind,
                optional=optional,
                name=str(name) if name is not None else None,
                choices=base.choices,
            )

        if isinstance(value, (list, tuple)):
            if not value or not all(isinstance(choice, str) for choice in value):
                raise ConfigurationError(
                    f"A choice argument needs a non-empty list of strings, got {value!r}"
                )
            return cls(kind=ArgumentKind.CHOICE, choices=tuple(value))

        if isinstance(value, str) and value in ("string", "number", "full"):
            return cls(kind=ArgumentKind(value))

        raise ConfigurationError(f"Unknown argument type: {value!r}")

    def describe(self) -> str:
        """Human readable kind, e.g. 'number' or '"a" | "b"'."""
        if self.kind == ArgumentKind.CHOICE:
            return " | ".join(json.dumps(choice) for choice in self.choices)
        if self.kind == ArgumentKind.FULL:
            return "full string"
        return self.kind.value

    def label(self) -> str:
        """How the argument is named in error messages."""
        if self.name:
            return f"{self.name} ({self.describe()})"
        return self.describe()

    def signature(self) -> str:
        """How the argument is shown in the help listing."""
        if self.optional:
            body = f"{self.name}: {self.describe()}" if self.name else self.describe()
            return f"[{body}]"
        if self.name:
            return f"<{self.name}: {self.describe()}>"
        return f"({self.describe()})"


class Pattern(tuple):
    """An immutable, validated sequence of ArgumentSpecs."""

    @classmethod
    def build(cls, items: Iterable[Any] = ()) -> "Pattern":
        """
        Normalize and validate a pattern declaration.

        Raises:
            ConfigurationError: A required argument follows an optional one,
                or anything follows a "full" argument.
        """
        if isinstance(items, Pattern):
            return items

        specs = [ArgumentSpec.coerce(item) for item in items]

        had_optional = False
        for index, spec in enumerate(specs):
            if had_optional and not spec.optional:
                raise ConfigurationError(
                    f"Argument {index + 1} ({spec.label()}) is required "
                    "but follows an optional argument"
                )
            had_optional = had_optional or spec.optional

            if spec.kind == ArgumentKind.FULL and index != len(specs) - 1:
                raise ConfigurationError(
                    f"Argument {index + 1} ({spec.label()}) consumes the rest "
                    "of the command and must be the last one"
                )

        return cls(specs)

    @property
    def has_full(self) -> bool:
        return bool(self) and self[-1].kind == ArgumentKind.FULL

    def signature(self) -> str:
        return " ".join(spec.signature() for spec in self)


# Accepted numerals: ASCII decimal with an optional
# exponent, signed Infinity, or unsigned 0x / 0o / 0b integers
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INFINITY = re.compile(r"([+-]?)Infinity")
_PREFIXED = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_BASES = {"x": 16, "o": 8, "b": 2}


def _parse_number(token: str) -> float:
    if _DECIMAL.fullmatch(token):
        return float(token)

    infinity = _INFINITY.fullmatch(token)
    if infinity:
        return -math.inf if infinity.group(1) == "-" else math.inf

    if _PREFIXED.fullmatch(token):
        return float(int(token[2:], _BASES[token[1].lower()]))

    raise NotANumber(token)


def parse_arguments(pattern: Pattern, tokens: Sequence[str]) -> tuple:
    """
    Match command tokens against a pattern.

    Args:
        pattern: A validated pattern.
        tokens: The words after the command name. Empty strings (from
            repeated spaces) count as missing.

    Returns:
        One value per spec: str for string, full and choice arguments,
        float for numbers, None for absent optional arguments.

    Raises:
        MissingArgument, NotInSet, NotANumber, TooManyArguments
    """
    parsed: list[Any] = []

    for index, spec in enumerate(pattern):
        token = tokens[index] if index < len(tokens) else ""

        if not token:
            if spec.optional:
                parsed.append(None)
                continue
            if spec.kind != ArgumentKind.FULL:
                raise MissingArgument(spec.label())

        if spec.kind == ArgumentKind.FULL:
            parsed.append(" ".join(tokens[index:]))
        elif spec.kind == ArgumentKind.CHOICE:
            if token not in spec.choices:
                raise NotInSet(token, spec.choices)
            parsed.append(token)
        elif spec.kind == ArgumentKind.NUMBER:
            parsed.append(_parse_number(token))
        else:
            parsed.append(token)

    if not pattern.has_full and len(tokens) > len(pattern):
        raise TooManyArguments(len(pattern), len(tokens))

    return tuple(parsed)
