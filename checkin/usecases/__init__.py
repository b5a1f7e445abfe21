"""Use-case layer for check-in workflows.

Each module coordinates domain objects and ports without performing transport
I/O directly.
"""
