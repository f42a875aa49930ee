from django.contrib.auth import get_user_model
from rest_framework import serializers

from schooling.models import DayOfWeek, Student, Timetable, TimetableEntry


class DayOfWeekField(serializers.ChoiceField):
    """Accepts weekday names in any case ("Monday", "MONDAY", "monday")."""

    def __init__(self, **kwargs):
        super().__init__(choices=DayOfWeek.choices, **kwargs)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.strip().lower()
        return super().to_internal_value(data)


class TimetableEntrySerializer(serializers.ModelSerializer):
    teacher_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = TimetableEntry
        fields = (
            "id",
            "day_of_week",
            "period_number",
            "start_time",
            "end_time",
            "subject",
            "room_number",
            "teacher_id",
            "is_active",
        )


class TimetableEntryInputSerializer(serializers.Serializer):
    day_of_week = DayOfWeekField()
    period_number = serializers.IntegerField(min_value=1)
    start_time = serializers.TimeField(required=False, allow_null=True)
    end_time = serializers.TimeField(required=False, allow_null=True)
    subject = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    room_number = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=30)
    teacher_id = serializers.PrimaryKeyRelatedField(
        source="teacher",
        queryset=get_user_model().objects.all(),
        required=False,
        allow_null=True,
    )


class TimetableSerializer(serializers.ModelSerializer):
    school_id = serializers.IntegerField(read_only=True)
    class_id = serializers.IntegerField(source="school_class_id", read_only=True)
    class_name = serializers.CharField(source="school_class.name", read_only=True)
    grade = serializers.IntegerField(source="school_class.grade", read_only=True)
    section = serializers.CharField(source="school_class.section", read_only=True)
    entries = TimetableEntrySerializer(many=True, read_only=True)

    class Meta:
        model = Timetable
        fields = (
            "id",
            "school_id",
            "class_id",
            "class_name",
            "grade",
            "section",
            "name",
            "periods_per_day",
            "is_active",
            "created_at",
            "updated_at",
            "entries",
        )


class TimetableCreateSerializer(serializers.Serializer):
    school_id = serializers.IntegerField()
    class_id = serializers.IntegerField()
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    periods_per_day = serializers.IntegerField(min_value=1)
    entries = TimetableEntryInputSerializer(many=True, required=False)


class TimetableEntriesReplaceSerializer(serializers.Serializer):
    entries = TimetableEntryInputSerializer(many=True, allow_empty=True)


class StudentSerializer(serializers.ModelSerializer):
    school_id = serializers.IntegerField(read_only=True)
    class_id = serializers.IntegerField(source="school_class_id", read_only=True)
    is_extra = serializers.BooleanField(read_only=True)

    class Meta:
        model = Student
        fields = (
            "id",
            "first_name",
            "last_name",
            "date_of_birth",
            "gender",
            "student_type",
            "school_id",
            "class_id",
            "parent_name",
            "parent_contact",
            "enrollment_date",
            "is_active",
            "extra_status",
            "is_extra",
        )
