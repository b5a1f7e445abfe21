"""Adapter package for external I/O implementations.

Purpose:
    Concrete implementations of the check-in port: the retrying JSON transport,
    the typed REST adapter, and the API failure taxonomy.

Dependencies:
    ``requests`` for network I/O; domain entities for typed results.

Call context:
    Imported by the CLI composition root and by tests that stub the session.
"""
