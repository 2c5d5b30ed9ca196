"""Everyday helpers: ETA estimation, timestamp parsing, results, byte stores, memoization and release checks."""

__version__ = "0.1.0"
__all__ = ["eta", "timestamps", "result", "stores", "memo", "releases"]