"""Student model.

A student owns orders.  How a student proves who they are (campus login,
OTP e-mail) is handled outside this service; here a student is only the
owner record the live-order rule is checked against.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class Student(BaseModel):
    student_number = models.CharField(max_length=32, unique=True)
    full_name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "students"
        ordering = ["student_number"]
        indexes = [
            models.Index(fields=["is_active"], name="students_active_idx"),
        ]

    def save(self, *args, **kwargs) -> None:
        if self.student_number:
            self.student_number = self.student_number.strip().upper()
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        # Never print the e-mail: it ends up in logs.
        return f"{self.full_name} ({self.student_number})"
