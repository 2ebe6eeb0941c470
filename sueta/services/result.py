from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from sueta.services.errors import SuetaError

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T = None) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def from_error(exc: Exception) -> "Result[T]":
        """Failure carrying the error's code (``unknown`` for foreign exceptions)."""
        code = exc.code if isinstance(exc, SuetaError) else "unknown"
        return Result(ok=False, error=str(exc), error_code=code)

    @property
    def is_duplicate(self) -> bool:
        return not self.ok and self.error_code == "duplicate"

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
