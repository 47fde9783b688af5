"""
.. include:: ../README.md
"""

__all__ = [
    "manifest",
    "conditions",
    "equality",
    "updater",
    "store",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
