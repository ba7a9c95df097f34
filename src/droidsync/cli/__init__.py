"""
DroidSync Command-Line Interface
================================

- **droidsync stress**: concurrency self-check for the idling registry
- **droidsync config**: show the effective configuration

Implemented as a Click group with comprehensive help and error reporting.
"""

__all__ = ["main"]
