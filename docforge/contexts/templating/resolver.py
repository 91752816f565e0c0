"""
Template Resolver

Rewrites raw descriptor text before it is parsed as JSON:

1. Loop expansion: {{#items}} ... {{/items}} repeats its body once per element
   of the "items" sequence, joining the repetitions with commas so the result
   drops straight into a JSON array.
2. Scalar substitution: {{ path }} is replaced by the JSON-escaped text of the
   value at the dotted path.

Resolution never fails. Missing variables become empty text, loops over
missing or non-sequence values produce nothing and a start marker with no
matching end marker is dropped. Each of these is reported to the optional
Diagnostics collector.
"""

import re
from typing import Any, Mapping, Optional, Union

from docforge.contexts.templating.logger import _log_debug
from docforge.contexts.templating.variable_context import ABSENT, VariableContext, is_sequence
from docforge.utils.diagnostics import Diagnostics, IssueKinds

LOOP_START_PATTERN = re.compile(r"\{\{\s*#\s*([^}]+?)\s*\}\}")
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^}]+?)\s*\}\}")

LOOP_SEPARATOR = ","
MAX_LOOP_EXPANSIONS = 10_000

# Characters escaped so a substituted value stays valid inside a JSON string
JSON_ESCAPES = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\t", "\\t"),
)


def escape_json_text(text: str) -> str:
    """
    Escape backslash, quote, newline, carriage return and tab.

    Example:
        >>> escape_json_text('say "hi"\\n')
        'say \\\\"hi\\\\"\\\\n'
    """
    for raw, escaped in JSON_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def value_to_text(value: Any) -> str:
    """
    Convert a resolved variable to the text inserted into the descriptor.

    Args:
        value: Value from a VariableContext lookup (may be ABSENT)

    Returns:
        "" for ABSENT/None, escaped text for strings, "true"/"false" for
        booleans, integers without decimals, floats with two decimals, and
        the escaped str() of anything else
    """
    if value is ABSENT or value is None:
        return ""
    if isinstance(value, str):
        return escape_json_text(value)
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.2f}"
    return escape_json_text(str(value))


def _loop_marker_pattern(name: str) -> re.Pattern:
    """Match start or end markers for one loop name; group 1 is '#' or '/'."""
    return re.compile(r"\{\{\s*([#/])\s*" + re.escape(name) + r"\s*\}\}")


class TemplateResolver:
    """
    Resolves loop and placeholder markers in descriptor text.

    Attributes:
        context: Root variable context
        diagnostics: Optional collector for resolution anomalies
        max_expansions: Upper bound on loop expansions per resolve() call;
            substituted values may themselves contain loop markers
    """

    def __init__(
        self,
        context: VariableContext,
        diagnostics: Optional[Diagnostics] = None,
        max_expansions: int = MAX_LOOP_EXPANSIONS,
    ):
        self.context = context
        self.diagnostics = diagnostics
        self.max_expansions = max_expansions

    def resolve(self, raw_text: str) -> str:
        """
        Expand loops, then substitute placeholders.

        Args:
            raw_text: Descriptor text containing template markers

        Returns:
            Resolved text (unchanged if it contains no markers)
        """
        expanded = self._expand_loops(raw_text, self.context)
        return self._substitute(expanded, self.context)

    def _warn(self, kind: str, message: str) -> None:
        _log_debug(message)
        if self.diagnostics is not None:
            self.diagnostics.warn(kind, message)

    def _find_loop_end(self, text: str, name: str, search_from: int) -> Optional[re.Match]:
        """
        Find the end marker closing a loop whose body starts at search_from.

        Start markers of the same name open a nested level and must be closed
        first; markers of other loops do not affect the depth.
        """
        depth = 1
        for match in _loop_marker_pattern(name).finditer(text, search_from):
            depth += 1 if match.group(1) == "#" else -1
            if depth == 0:
                return match
        return None

    def _expand_loops(self, text: str, context: VariableContext) -> str:
        """
        Expand loops until no start marker remains.

        Scanning resumes at the start of each expansion, so loops nested in a
        body are expanded against this context once the enclosing loop has
        substituted its iteration variables into them.
        """
        pos = 0
        expansions = 0
        while True:
            start = LOOP_START_PATTERN.search(text, pos)
            if start is None:
                return text

            if expansions >= self.max_expansions:
                self._warn(
                    IssueKinds.LOOP_LIMIT,
                    f"Stopped after {expansions} loop expansions; remaining loops left as is",
                )
                return text

            name = start.group(1).strip()
            end = self._find_loop_end(text, name, start.end())

            if end is None:
                self._warn(IssueKinds.UNMATCHED_LOOP, f"No closing marker for loop '{name}'")
                text = text[: start.start()] + text[start.end() :]
                pos = start.start()
                continue

            body = text[start.end() : end.start()]
            expansion = self._expand_loop(name, body, context)
            text = text[: start.start()] + expansion + text[end.end() :]
            pos = start.start()
            expansions += 1

    def _expand_loop(self, name: str, body: str, context: VariableContext) -> str:
        """Repeat body once per item with the item's variables substituted in."""
        collection = context.lookup(name)
        if not is_sequence(collection):
            self._warn(
                IssueKinds.NON_SEQUENCE_LOOP,
                f"Loop '{name}' target is {collection!r}, not a sequence",
            )
            return ""

        separate = body.strip() != ""
        parts = []
        for index, item in enumerate(collection):
            parts.append(self._substitute(body, context.for_item(item, index)))

        return (LOOP_SEPARATOR if separate else "").join(parts)

    def _substitute(self, text: str, context: VariableContext) -> str:
        def replace(match: re.Match) -> str:
            path = match.group(1).strip()
            # Leftover loop markers are kept verbatim
            if path.startswith(("#", "/")):
                return match.group(0)

            value = context.lookup(path)
            if value is ABSENT:
                self._warn(IssueKinds.MISSING_VARIABLE, f"Variable '{path}' is not defined")
            return value_to_text(value)

        return PLACEHOLDER_PATTERN.sub(replace, text)


def resolve(
    raw_text: str,
    variables: Union[VariableContext, Mapping[str, Any], None] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    """
    Resolve template markers in raw descriptor text.

    Args:
        raw_text: Descriptor text
        variables: Root VariableContext or plain mapping of variables
        diagnostics: Optional collector for resolution anomalies

    Returns:
        Resolved descriptor text

    Example:
        >>> resolve('"Hi {{name}}"', {"name": "Ada"})
        '"Hi Ada"'
        >>> resolve('[{{#xs}}"{{item}}"{{/xs}}]', {"xs": ["a", "b"]})
        '["a","b"]'
    """
    context = variables if isinstance(variables, VariableContext) else VariableContext(variables)
    return TemplateResolver(context, diagnostics).resolve(raw_text)
