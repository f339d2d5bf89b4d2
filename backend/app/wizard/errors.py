"""
Errors raised while drafting and committing an audit
"""
from typing import Dict, Optional


class AuditCreationError(Exception):
    """Base error for the audit creation flow"""
    pass


# === Precondition errors (raised before any write) ===

class OrganizationNotFoundError(AuditCreationError):
    """Acting user is unknown or not attached to a company"""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id
        if user_id:
            message = f"No organization found for user {user_id}"
        else:
            message = "User is not authenticated"
        super().__init__(message)


class DraftValidationError(AuditCreationError):
    """Draft content is inconsistent with the standards catalog"""
    pass


# === Write errors ===

class AuditWriteError(AuditCreationError):
    """A persistence call failed; earlier steps stay committed"""

    def __init__(self, step: str, message: str):
        self.step = step
        super().__init__(f"{step} failed: {message}")


# === Validation errors (local to the form that raised them) ===

class StepGateError(AuditCreationError):
    """Forward navigation or submit attempted while the step gate is closed"""

    def __init__(self, step: int, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"Step {step}: {reason}")


class SessionValidationError(AuditCreationError):
    """Session editor refused to save; holds per-field messages"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in self.errors.items()))
