"""
Errors
======

Exceptions raised by the simulation core.
"""


class InvariantViolation(RuntimeError):
    """
    An internal simulation invariant was broken.

    Raised for defects such as a decreasing score or out-of-order pipe ids.
    These are never swallowed: a run that raises one cannot be trusted for
    scoring.
    """
