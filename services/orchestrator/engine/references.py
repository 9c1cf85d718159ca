"""
Reference resolution for step inputs.

Three forms are recognised:

    $input.<path>           value from the run-level inputs
    $steps.<path>           value from earlier step outputs
    "... {{scope.path}} ..." placeholders substituted into a literal string

Paths are dot separated. An integer segment indexes a list, ``*`` (or a
segment ending in ``*``) maps the rest of the path over every element of a
list. Missing keys resolve to ``None`` rather than raising; executors decide
what a missing input means.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from shared.types import ExecutionContext

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")

INPUT_SCOPE = "input"
STEPS_SCOPE = "steps"
REFERENCE_PREFIXES = (("$input.", INPUT_SCOPE), ("$steps.", STEPS_SCOPE))


@dataclass(frozen=True)
class PathSegment:
    pass


@dataclass(frozen=True)
class PropertySegment(PathSegment):
    key: str


@dataclass(frozen=True)
class IndexSegment(PathSegment):
    index: int


@dataclass(frozen=True)
class WildcardSegment(PathSegment):
    pass


@dataclass(frozen=True)
class ReferenceExpr:
    raw: str
    scope: str
    segments: Tuple[PathSegment, ...]

    @property
    def head(self) -> Optional[str]:
        """First key of the path; for `$steps.` references this is the step id."""
        if self.segments and isinstance(self.segments[0], PropertySegment):
            return self.segments[0].key
        return None


@dataclass(frozen=True)
class TemplateLiteral:
    text: str


@dataclass(frozen=True)
class TemplatePlaceholder:
    raw: str
    reference: Optional[ReferenceExpr]


TemplateToken = Union[TemplateLiteral, TemplatePlaceholder]


class _PathParser:
    """path ::= segment ("." segment)* ; segment ::= key | key "*" | "*" | integer"""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> Tuple[PathSegment, ...]:
        segments = self._segment()
        while self.pos < len(self.text) and self.text[self.pos] == ".":
            self.pos += 1
            segments.extend(self._segment())
        return tuple(segments)

    def _segment(self) -> List[PathSegment]:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] != ".":
            self.pos += 1
        token = self.text[start:self.pos].strip()

        if token == "*":
            return [WildcardSegment()]
        if token.endswith("*"):
            return [PropertySegment(token[:-1]), WildcardSegment()]
        if token.isdigit():
            return [IndexSegment(int(token))]
        return [PropertySegment(token)]


def parse_path(text: str) -> Tuple[PathSegment, ...]:
    return _PathParser(text).parse()


def parse_reference(value: Any) -> Optional[ReferenceExpr]:
    """Parses `$input.<path>` / `$steps.<path>`; anything else is not a reference"""
    if not isinstance(value, str):
        return None
    for prefix, scope in REFERENCE_PREFIXES:
        if value.startswith(prefix):
            return ReferenceExpr(raw=value, scope=scope, segments=parse_path(value[len(prefix):]))
    return None


def _parse_placeholder(raw: str, inner: str) -> TemplatePlaceholder:
    inner = inner.strip()
    for scope in (INPUT_SCOPE, STEPS_SCOPE):
        if inner.startswith(f"{scope}."):
            path = inner[len(scope) + 1:]
            return TemplatePlaceholder(raw, ReferenceExpr(raw=raw, scope=scope, segments=parse_path(path)))
    return TemplatePlaceholder(raw, None)


def parse_template(text: str) -> List[TemplateToken]:
    tokens: List[TemplateToken] = []
    cursor = 0
    for match in PLACEHOLDER_PATTERN.finditer(text):
        start, end = match.span()
        if start > cursor:
            tokens.append(TemplateLiteral(text[cursor:start]))
        tokens.append(_parse_placeholder(match.group(0), match.group(1)))
        cursor = end
    if cursor < len(text) or not tokens:
        tokens.append(TemplateLiteral(text[cursor:]))
    return tokens


def _child(value: Any, segment: PathSegment) -> Any:
    if isinstance(value, dict):
        if isinstance(segment, IndexSegment):
            return value.get(str(segment.index))
        return value.get(segment.key)
    if isinstance(value, (list, tuple)) and isinstance(segment, IndexSegment):
        if 0 <= segment.index < len(value):
            return value[segment.index]
    return None


def _flatten(values: List[Any]) -> List[Any]:
    flat: List[Any] = []
    for item in values:
        if isinstance(item, list):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


def lookup_path(value: Any, segments: Sequence[PathSegment]) -> Any:
    current = value
    for index, segment in enumerate(segments):
        if current is None:
            return None
        if isinstance(segment, WildcardSegment):
            if not isinstance(current, (list, tuple)):
                return None
            rest = segments[index + 1:]
            mapped = [lookup_path(item, rest) for item in current]
            if any(isinstance(s, WildcardSegment) for s in rest):
                return _flatten(mapped)
            return mapped
        current = _child(current, segment)
    return current


def resolve_reference(reference: ReferenceExpr, context: ExecutionContext) -> Any:
    root = context.inputs if reference.scope == INPUT_SCOPE else context.step_results
    return lookup_path(root, reference.segments)


def stringify(value: Any) -> str:
    """String form used when a value is substituted into text"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    return str(value)


def render_template(text: str, context: ExecutionContext) -> str:
    pieces: List[str] = []
    for token in parse_template(text):
        if isinstance(token, TemplateLiteral):
            pieces.append(token.text)
            continue
        value = resolve_reference(token.reference, context) if token.reference else None
        # Unresolvable placeholders stay verbatim
        pieces.append(token.raw if value is None else stringify(value))
    return "".join(pieces)


def resolve_value(value: Any, context: ExecutionContext) -> Any:
    reference = parse_reference(value)
    if reference is not None:
        return resolve_reference(reference, context)
    if isinstance(value, str) and "{{" in value:
        return render_template(value, context)
    return value


def substitute_variables(template: str, variables: Dict[str, Any]) -> str:
    """Fills `{{name}}` / `{{a.b}}` placeholders from a flat variables map"""

    def replace(match: "re.Match[str]") -> str:
        value = lookup_path(variables, parse_path(match.group(1).strip()))
        return match.group(0) if value is None else stringify(value)

    return PLACEHOLDER_PATTERN.sub(replace, template)


def iter_references(value: Any) -> Iterator[ReferenceExpr]:
    """Yields every reference in an input value, including template placeholders"""
    reference = parse_reference(value)
    if reference is not None:
        yield reference
    elif isinstance(value, str):
        for token in parse_template(value):
            if isinstance(token, TemplatePlaceholder) and token.reference is not None:
                yield token.reference
