"""
Diagnostics collection for template resolution and layout.

Resolution and layout degrade silently by default: a missing variable renders
as empty text, an unknown element type is skipped. A Diagnostics collector can
be passed to either stage to record those anomalies instead of losing them,
and strict mode turns the first recorded anomaly into an exception.
"""

from dataclasses import dataclass, field
from typing import List


class IssueKinds:
    """Centralized issue kind identifiers."""

    # Template resolution
    MISSING_VARIABLE = "missing_variable"
    UNMATCHED_LOOP = "unmatched_loop"
    NON_SEQUENCE_LOOP = "non_sequence_loop"
    LOOP_LIMIT = "loop_limit"

    # Descriptor decoding
    MALFORMED_FIELD = "malformed_field"
    MALFORMED_ROWS = "malformed_rows"

    # Layout
    UNKNOWN_ELEMENT = "unknown_element"
    EMPTY_TABLE = "empty_table"
    EMPTY_GRID = "empty_grid"
    BAD_COLOR = "bad_color"
    BAD_FONT = "bad_font"
    BAD_PAGE_FORMAT = "bad_page_format"
    BAD_IMAGE = "bad_image"
    TEXT_TOO_NARROW = "text_too_narrow"
    MISSING_FONT_FILE = "missing_font_file"


class StrictModeError(RuntimeError):
    """
    Raised by a strict Diagnostics collector on the first recorded issue.

    Attributes:
        issue: The Issue that triggered the error
    """

    def __init__(self, issue: "Issue"):
        self.issue = issue
        super().__init__(f"{issue.kind}: {issue.message}")


@dataclass(frozen=True)
class Issue:
    """A single recorded anomaly."""

    kind: str
    message: str


@dataclass
class Diagnostics:
    """
    Collector for non-fatal anomalies.

    Attributes:
        strict: Raise StrictModeError on the first issue instead of collecting
        issues: Recorded issues in the order they occurred
    """

    strict: bool = False
    issues: List[Issue] = field(default_factory=list)

    def warn(self, kind: str, message: str) -> None:
        issue = Issue(kind=kind, message=message)
        if self.strict:
            raise StrictModeError(issue)
        self.issues.append(issue)

    @property
    def messages(self) -> List[str]:
        return [f"{issue.kind}: {issue.message}" for issue in self.issues]

    @property
    def is_clean(self) -> bool:
        """True if nothing was recorded."""
        return len(self.issues) == 0

    def of_kind(self, kind: str) -> List[Issue]:
        return [issue for issue in self.issues if issue.kind == kind]
