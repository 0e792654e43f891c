"""Scheduling DRF serializers (query-string validation only)."""

from __future__ import annotations

from rest_framework import serializers


class ScheduleQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(required=False, min_value=1, max_value=31)
