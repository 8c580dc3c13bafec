"""
unfy - lightweight data-access layer for MySQL and SQLite.

Records and record sets over a normalized schema catalog; see
``unfy.core`` for the module map.
"""

__version__ = "0.1.0"

from unfy.core import *  # noqa
