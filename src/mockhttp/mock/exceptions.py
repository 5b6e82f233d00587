"""
mockhttp Exceptions
"""

from typing import List, Optional


class MockHttpError(Exception):
    """Base class for mockhttp errors."""


class MockServerError(MockHttpError):
    """Mock server could not be started or stopped."""


class UnsatisfiedExpectationException(MockHttpError, AssertionError):
    """
    Raised by verify() when expectations were not met.

    Attributes:
        unmet: Descriptions of expectations that did not receive the
            required number of calls
        unexpected: Descriptions of requests that matched no expectation
    """

    def __init__(self, unmet: Optional[List[str]] = None, unexpected: Optional[List[str]] = None):
        self.unmet = list(unmet or [])
        self.unexpected = list(unexpected or [])
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        lines = ["Expectations were not satisfied."]

        if self.unmet:
            lines.append("")
            lines.append(f"Unmet expectations ({len(self.unmet)}):")
            for description in self.unmet:
                lines.append(_indent(description))

        if self.unexpected:
            lines.append("")
            lines.append(f"Unexpected requests ({len(self.unexpected)}):")
            for description in self.unexpected:
                lines.append(_indent(description))

        return "\n".join(lines)


def _indent(text: str) -> str:
    """Render a multi-line description as an indented bullet."""
    first, *rest = text.splitlines() or [""]
    return "\n".join([f"  - {first}"] + [f"    {line}" for line in rest])
