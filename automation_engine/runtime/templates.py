"""``{{name}}`` template resolution.

Templates are tokenized rather than regex-substituted so that escaping is
well defined:

- ``{{ name }}`` is a reference; ``name`` may be a dotted path
  (``user.email``) with optional ``[n]`` indices (``items[0].id``).
- ``\\{{`` produces a literal ``{{``.
- A reference that cannot be resolved is left in the output unchanged.

A string that consists of exactly one reference resolves to the referenced
value itself (a dict stays a dict); references embedded in longer text are
rendered as strings, with non-string values JSON-encoded.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

_INDEX = re.compile(r"\[(\d+)\]")


@dataclass(frozen=True)
class Token:
    kind: str  # "text" or "ref"
    value: str
    raw: str


def tokenize(template: str) -> List[Token]:
    tokens: List[Token] = []
    text: List[str] = []

    def _flush() -> None:
        joined = "".join(text)
        if joined:
            tokens.append(Token("text", joined, joined))
        text.clear()

    i = 0
    length = len(template)
    while i < length:
        start = template.find("{{", i)
        if start == -1:
            text.append(template[i:])
            break
        if start > i and template[start - 1] == "\\":
            text.append(template[i : start - 1])
            text.append("{{")
            i = start + 2
            continue
        if start > i:
            text.append(template[i:start])
        end = template.find("}}", start + 2)
        if end == -1:
            text.append(template[start:])
            break
        raw = template[start : end + 2]
        name = template[start + 2 : end].strip()
        if name and "{" not in name:
            _flush()
            tokens.append(Token("ref", name, raw))
        else:
            text.append(raw)
        i = end + 2
    _flush()
    return tokens


def lookup(variables: Mapping[str, Any], reference: str) -> Tuple[bool, Any]:
    """Resolve a variable name or dotted path; returns ``(found, value)``."""
    if reference in variables:
        return True, variables[reference]
    parts = _INDEX.sub(r".\1", reference).split(".")
    current: Any = variables
    for part in parts:
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return False, None
    return True, current


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def render_template(template: str, variables: Mapping[str, Any]) -> Any:
    if "{{" not in template:
        return template
    tokens = tokenize(template)
    if len(tokens) == 1 and tokens[0].kind == "ref":
        found, value = lookup(variables, tokens[0].value)
        return value if found else tokens[0].raw

    rendered: List[str] = []
    for token in tokens:
        if token.kind == "text":
            rendered.append(token.value)
            continue
        found, value = lookup(variables, token.value)
        rendered.append(stringify(value) if found else token.raw)
    return "".join(rendered)


def resolve_templates(value: Any, variables: Mapping[str, Any]) -> Any:
    """Resolve templates recursively in strings, lists and dict values."""
    if isinstance(value, str):
        return render_template(value, variables)
    if isinstance(value, list):
        return [resolve_templates(item, variables) for item in value]
    if isinstance(value, dict):
        return {key: resolve_templates(item, variables) for key, item in value.items()}
    return value
