from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    STORAGE = "storage"
    NOT_FOUND = "not_found"
    ANALYSIS = "analysis"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"


class MindCareError(Exception):
    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.STORAGE,
        key: Optional[str] = None,
    ) -> None:
        self.message = message
        self.category = category
        self.key = key
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.category.value}] {self.message}"]
        if self.key:
            parts.append(f"Key: {self.key}")
        return " | ".join(parts)


class StorageFailure(MindCareError):
    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.STORAGE, key)


class NotFoundError(MindCareError):
    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.NOT_FOUND, key)


class AnalysisUnavailable(MindCareError):
    def __init__(self, message: str = "Analysis provider unavailable") -> None:
        super().__init__(message, ErrorCategory.ANALYSIS)


class AnalysisTimeout(AnalysisUnavailable):
    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Analysis timed out after {timeout:g}s")


class ValidationError(MindCareError):
    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.VALIDATION, field)


class AuthenticationError(MindCareError):
    def __init__(self, message: str, conflict: bool = False) -> None:
        self.conflict = conflict
        super().__init__(message, ErrorCategory.AUTHENTICATION)
