"""
Progress event data model.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification delivered to an observer callback."""
    phase: str
    percentage: float
    message: str = ""
