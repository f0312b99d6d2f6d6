"""
Departments app serializers.

Read serializers for the directory and request/response serializers for
connection management.  Rules (who may connect what) live in
``services.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import ConnectionType, Department, DepartmentConnection, SubDepartment


class SubDepartmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubDepartment
        fields = ["id", "name", "code", "is_active"]
        read_only_fields = fields


class DepartmentSerializer(serializers.ModelSerializer):
    """Department with its nested sub-departments."""

    sub_departments = SubDepartmentSerializer(many=True, read_only=True)

    class Meta:
        model = Department
        fields = ["id", "name", "code", "description", "is_active", "sub_departments"]
        read_only_fields = fields


class DepartmentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id", "name", "code"]
        read_only_fields = fields


class DepartmentConnectionSerializer(serializers.ModelSerializer):
    """Read serializer for a connection including its statistics."""

    source_department = DepartmentSummarySerializer(read_only=True)
    target_department = DepartmentSummarySerializer(read_only=True)
    established_by = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = DepartmentConnection
        fields = [
            "id",
            "source_department",
            "target_department",
            "connection_type",
            "is_active",
            "notes",
            "established_by",
            "transfer_count",
            "last_transfer_at",
            "created_at",
        ]
        read_only_fields = fields


class DepartmentConnectionCreateSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/connections/``.
    """

    source_department = serializers.IntegerField(min_value=1)
    target_department = serializers.IntegerField(min_value=1)
    connection_type = serializers.ChoiceField(
        choices=ConnectionType.choices,
        default=ConnectionType.BOTH,
    )
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
