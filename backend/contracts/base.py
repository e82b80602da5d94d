"""
Base Contracts and Shared Types

Foundational types used by every layer of the simulated backend and by
the client-side store that consumes it.

BOUNDARY ENFORCEMENT:
=====================
- This module has no dependencies on other layers
- Errors are explicit and typed, never silent defaults
- Enumerations are closed: unknown values fail fast
"""

from __future__ import annotations
from enum import Enum, IntEnum, auto
from typing import Dict, Optional


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for rejected requests.
    Every rejection carries exactly one of these.
    """
    # Routing errors
    ENDPOINT_NOT_FOUND = auto()

    # Lookup errors
    ENTITY_NOT_FOUND = auto()

    # Validation errors
    MISSING_FIELD = auto()
    INVALID_FIELD = auto()
    INVALID_CAPTCHA = auto()
    INVALID_PAGINATION = auto()


class ApiError(Exception):
    """
    Rejection raised by the query layer.

    Carries a status/message pair the way an HTTP backend would,
    plus the explicit error code for programmatic handling.
    """
    status: int = 500

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        status: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        if status is not None:
            self.status = status

    def to_dict(self) -> Dict[str, object]:
        return {"status": self.status, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, code={self.code.name}, message={self.message!r})"


class NotFoundError(ApiError):
    """Unknown endpoint or missing entity id."""
    status = 404

    def __init__(self, message: str, code: ErrorCode = ErrorCode.ENTITY_NOT_FOUND):
        super().__init__(message, code)


class ValidationError(ApiError):
    """Empty or invalid required field."""
    status = 400

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_FIELD):
        super().__init__(message, code)


# =============================================================================
# ACCOUNT ENUMERATIONS
# =============================================================================

class Role(Enum):
    USER = "user"
    VIP = "vip"
    ADMIN = "admin"

    @classmethod
    def from_username(cls, username: str) -> Role:
        """Naming heuristic used by the login endpoint."""
        lowered = username.lower()
        if "admin" in lowered:
            return cls.ADMIN
        if "vip" in lowered:
            return cls.VIP
        return cls.USER


class VipType(Enum):
    NONE = "none"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    PERMANENT = "permanent"


class CultivationLevel(IntEnum):
    """
    Ordered account level.

    Used purely as a numeric threshold for feature gating, e.g. the
    minimum level required to comment. Ordering is the integer value.
    """
    QI_REFINING = 1
    FOUNDATION = 2
    GOLDEN_CORE = 3
    NASCENT_SOUL = 4
    DEITY_TRANSFORMATION = 5
    VOID_REFINING = 6
    BODY_INTEGRATION = 7
    MAHAYANA = 8
    TRIBULATION = 9

    def meets(self, threshold: CultivationLevel) -> bool:
        return self >= threshold

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


class AnnouncementKind(Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


class FeedbackKind(Enum):
    BUG = "bug"
    SUGGESTION = "suggestion"
