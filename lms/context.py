"""
Explicit caller context passed into every workflow call
"""
from dataclasses import dataclass
from uuid import UUID

from lms.exceptions import PermissionDeniedError

STAFF_ROLES = ("teacher", "admin")


@dataclass(frozen=True)
class RequestContext:
    user_id: UUID
    role: str = "student"

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def require_staff(self) -> None:
        if not self.is_staff:
            raise PermissionDeniedError("Teacher or admin role required")

    def require_self_or_staff(self, student_id: UUID) -> None:
        """Students may only act on their own records"""
        if not self.is_staff and self.user_id != student_id:
            raise PermissionDeniedError("Not allowed to access another student's records")
