"""Student domain exceptions."""

from __future__ import annotations


class StudentNotFound(Exception):
    """The student does not exist or is inactive."""
