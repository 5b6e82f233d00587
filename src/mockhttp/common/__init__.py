"""
mockhttp Common Utilities

Shared helpers used across mockhttp modules.
"""

from .url_utils import ParsedQuery, QueryStringParser

__all__ = [
    'ParsedQuery',
    'QueryStringParser'
]
