"""
Logging setup shared by the API process and the engine
"""

from .config import setup_logging
from .formatters import SimpleFormatter, StructuredFormatter

__all__ = [
    "setup_logging",
    "SimpleFormatter",
    "StructuredFormatter",
]
