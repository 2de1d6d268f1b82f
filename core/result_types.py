#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Result objects for the signage video pipeline

Provisioning and process orchestration report their outcome through Result
objects instead of raising, so the outer update cycle can log the failure
and carry on with its own retry schedule.
"""

from typing import TypeVar, Generic, Optional, List, Dict, Any
from dataclasses import dataclass, field

from .exceptions import SignageError

T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """
    Universal result object that replaces boolean returns

    Carries either a value or a SignageError, plus warnings and metadata
    collected along the way.
    """
    success: bool
    value: Optional[T] = None
    error: Optional[SignageError] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: T, warnings: Optional[List[str]] = None, **metadata) -> 'Result[T]':
        """
        Create a successful result

        Args:
            value: The successful result value
            warnings: Optional list of warnings
            **metadata: Additional metadata to store

        Returns:
            Result object indicating success
        """
        return cls(
            success=True,
            value=value,
            error=None,
            warnings=warnings or [],
            metadata=metadata
        )

    @classmethod
    def error(cls, error: SignageError, warnings: Optional[List[str]] = None) -> 'Result[T]':
        """
        Create an error result

        Args:
            error: The error that occurred
            warnings: Optional list of warnings that occurred before the error

        Returns:
            Result object indicating failure
        """
        return cls(
            success=False,
            error=error,
            warnings=warnings or []
        )

    def unwrap(self) -> T:
        """
        Get value or raise error

        Raises:
            SignageError: If the result indicates failure
        """
        if not self.success:
            raise self.error
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get value or return default"""
        return self.value if self.success else default

    @property
    def message(self) -> str:
        """Diagnostic text: the error message on failure, empty on success"""
        if self.success or self.error is None:
            return ""
        return self.error.message

    def has_warnings(self) -> bool:
        """Check if result has warnings"""
        return len(self.warnings) > 0

    def add_warning(self, warning: str) -> 'Result[T]':
        """Add a warning to this result"""
        self.warnings.append(warning)
        return self

    def add_metadata(self, key: str, value: Any) -> 'Result[T]':
        """Add metadata to this result"""
        self.metadata[key] = value
        return self
