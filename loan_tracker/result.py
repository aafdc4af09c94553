"""Result pattern for operations that report failures instead of raising.

The facade uses it where a failure is an expected outcome the caller shows
to the user, such as an import file that cannot be read.
"""
from dataclasses import dataclass
from typing import Optional, TypeVar, Generic

T = TypeVar('T')


@dataclass
class Result(Generic[T]):
    """Represents the outcome of an operation.

    Attributes:
        success: Whether the operation succeeded.
        value: The return value on success, None on failure.
        error: Error message on failure, None on success.
        error_type: Type/category of error (e.g., "VALIDATION").

    Usage:
        result = engine.import_loan_csv(text)
        if result.success:
            print(f"Imported: {result.value.name}")
        else:
            print(f"Error importing loan: {result.error}")
    """
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, value: T = None) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, error_type: str = None) -> 'Result[T]':
        """Create a failure result.

        Args:
            error: Error message describing what went wrong.
            error_type: Optional error category for programmatic handling.
        """
        return cls(success=False, error=error, error_type=error_type)

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """Get the value, raising an exception if the operation failed.

        Raises:
            ValueError: If the operation failed.
        """
        if not self.success:
            raise ValueError(f"Result unwrap failed: {self.error}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value if self.success else default


class ErrorType:
    """Standard error type constants."""
    VALIDATION = "VALIDATION"
