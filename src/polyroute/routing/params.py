"""Path placeholder parsing.

A placeholder is ``{name}``, optionally followed by ``:qualifier`` and
``?``:

- ``{id:int}`` — a built-in converter (``str``, ``int``, ``float``, ``path``).
- ``{post:slug}`` — any other qualifier names the model attribute (binding
  field) that supplies the value; it matches like ``str``.
- ``{page?}`` — optional; may be left out of the URL.
"""

import re
from dataclasses import dataclass

# (regex_pattern, python_type) for each supported converter
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}

PLACEHOLDER = re.compile(
    r"\{(?P<name>[A-Za-z_][\w.-]*)(?::(?P<qualifier>\w+))?(?P<optional>\?)?\}"
)
"""Matches a single placeholder token inside a route template."""

OPTIONAL_PLACEHOLDER = re.compile(r"\{[A-Za-z_][\w.-]*(?::\w+)?\?\}")


@dataclass(frozen=True, slots=True)
class Placeholder:
    """A placeholder token found in a route template."""

    token: str
    name: str
    param_type: str = "str"
    binding_field: str | None = None
    optional: bool = False


def placeholder_from_match(match: re.Match[str]) -> Placeholder:
    """Build a ``Placeholder`` from a ``PLACEHOLDER`` match."""
    token = match.group(0)
    qualifier = match["qualifier"]
    if qualifier is None or qualifier in CONVERTERS:
        return Placeholder(
            token=token,
            name=match["name"],
            param_type=qualifier or "str",
            optional=match["optional"] is not None,
        )
    return Placeholder(
        token=token,
        name=match["name"],
        binding_field=qualifier,
        optional=match["optional"] is not None,
    )


def parse_placeholder(token: str) -> Placeholder | None:
    """Parse a full ``{...}`` token, or return ``None`` if it is not one."""
    match = PLACEHOLDER.fullmatch(token)
    if match is None:
        return None
    return placeholder_from_match(match)


def find_placeholders(template: str) -> list[Placeholder]:
    """All placeholders in *template*, left to right."""
    return [placeholder_from_match(match) for match in PLACEHOLDER.finditer(template)]
