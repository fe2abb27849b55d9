"""Course enrollment for students."""

from .service import EnrollmentGate


__all__ = ["EnrollmentGate"]
