"""
mockhttp Response Model

Response values registered by tests and written back by the mock server.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .request import NOT_SPECIFIED


@dataclass(frozen=True)
class HttpResponse:
    """
    HTTP response to send back for a matched request.

    Example:
        HttpResponse(200, 'text/plain', 'pong')
    """

    status_code: int
    content_type: Optional[str] = None
    content: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.status_code, bool) or not isinstance(self.status_code, int):
            raise TypeError(f"Status code should be an int, got {type(self.status_code).__name__}")
        if not 100 <= self.status_code <= 599:
            raise ValueError(f"Invalid HTTP status code: {self.status_code}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'status_code': self.status_code,
            'content_type': self.content_type,
            'content': self.content
        }

    def __str__(self) -> str:
        return "\n".join([
            f"Status code: {self.status_code}",
            f"Content-Type: {self.content_type if self.content_type is not None else NOT_SPECIFIED}",
            f"Content: {self.content if self.content is not None else NOT_SPECIFIED}",
        ])
