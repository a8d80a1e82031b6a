"""
Domain exceptions for typed_defaults.

Notes
-----
Conversion failures are never raised: decode and encode report them with the
INVALID marker and the façade degrades to the caller's default or to a no-op.
Exceptions are reserved for store misuse and store I/O failures.
"""

from __future__ import annotations


class TypedDefaultsError(RuntimeError):
    """Base exception for all typed_defaults failures."""
