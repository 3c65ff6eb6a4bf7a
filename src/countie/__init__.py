"""
Countie backend package.

The countdown engine is importable without the web stack:

    from countie.engine import breakdown, progress, format_remaining

The FastAPI application lives in ``countie.main``.
"""

__version__ = "0.1.0"
