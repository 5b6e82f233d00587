"""
mockhttp

Lightweight mock HTTP server for automated tests: declare expected requests
and their responses, exercise your code, then verify.
"""

from .mock import *  # noqa: F401,F403
from .mock import __all__

__version__ = '1.0.0'
