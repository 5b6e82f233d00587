"""
mockhttp URL Utilities

Query string parsing for decoded incoming requests.
"""

from dataclasses import dataclass, field
from urllib.parse import parse_qsl
from typing import List, Tuple


@dataclass
class ParsedQuery:
    """Query string split into usable pairs and pairs with a blank part."""

    pairs: List[Tuple[str, str]] = field(default_factory=list)
    blank: List[Tuple[str, str]] = field(default_factory=list)


class QueryStringParser:
    """Turns raw query strings into ordered key/value pairs."""

    @staticmethod
    def parse(query_string: str) -> ParsedQuery:
        """
        Parse a query string into (key, value) pairs.

        Percent-escapes are decoded and exact duplicates dropped, keeping
        first-seen order. Pairs with an empty key or value (`?q=`, `?flag`)
        are reported separately in `blank`.

        Args:
            query_string: Raw query string without the leading '?'

        Returns:
            ParsedQuery with pairs and blank pairs
        """
        parsed = ParsedQuery()
        if not query_string:
            return parsed

        for key, value in dict.fromkeys(parse_qsl(query_string, keep_blank_values=True)):
            if key and value:
                parsed.pairs.append((key, value))
            else:
                parsed.blank.append((key, value))

        return parsed
