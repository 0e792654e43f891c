"""Django ORM implementation of the Student repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.students.models import Student
from modules.students.repositories.interfaces import IStudentRepository

logger = structlog.get_logger(__name__)


class StudentDjangoRepository(IStudentRepository):
    def get_by_id(self, id: str) -> Optional[Student]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return Student.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Student]:
        queryset = Student.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Student) -> Student:
        entity.save()
        logger.info("student.saved", student_id=str(entity.id))
        return entity

    def get_for_update(self, id: str) -> Optional[Student]:
        try:
            return Student.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_student_number(self, student_number: str) -> Optional[Student]:
        return Student.objects.filter(
            student_number=student_number.strip().upper()
        ).first()
