"""Student repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.students.models import Student


class IStudentRepository(IRepository["Student"]):
    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Student]:
        """Retrieve a student with a row-level lock (SELECT FOR UPDATE).

        Serializes the one-live-order-per-service-type check for that
        student.  Returns ``None`` if the student does not exist.
        """

    @abstractmethod
    def get_by_student_number(self, student_number: str) -> Optional[Student]:
        """Retrieve a student by campus student number."""
