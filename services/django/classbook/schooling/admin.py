from django.contrib import admin

from .models import (
    School,
    SchoolClass,
    Timetable,
    TimetableEntry,
    Student,
    Attendance,
    StudentImportLog,
)


class TimetableEntryInline(admin.TabularInline):
    model = TimetableEntry
    extra = 0
    raw_id_fields = ("teacher",)


@admin.register(School)
class SchoolAdmin(admin.ModelAdmin):
    list_display = ("name", "contact_phone", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "address")


@admin.register(SchoolClass)
class SchoolClassAdmin(admin.ModelAdmin):
    list_display = ("name", "school", "grade", "section", "academic_year", "is_active")
    list_filter = ("school", "grade", "is_active")
    search_fields = ("name", "school__name")


@admin.register(Timetable)
class TimetableAdmin(admin.ModelAdmin):
    inlines = [TimetableEntryInline]
    list_display = ("__str__", "school", "school_class", "periods_per_day", "is_active", "updated_at")
    list_filter = ("school", "is_active")
    search_fields = ("name", "school_class__name")


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = (
        "first_name",
        "last_name",
        "date_of_birth",
        "school",
        "school_class",
        "student_type",
        "extra_status",
        "is_active",
    )
    list_filter = ("school", "student_type", "extra_status", "is_active")
    search_fields = ("first_name", "last_name", "parent_name", "parent_contact")
    raw_id_fields = ("added_by",)


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ("student", "attendance_date", "period_number", "status", "marked_by")
    list_filter = ("school", "status", "attendance_date")
    search_fields = ("student__first_name", "student__last_name")
    raw_id_fields = ("student", "timetable_entry", "marked_by")


@admin.register(StudentImportLog)
class StudentImportLogAdmin(admin.ModelAdmin):
    list_display = (
        "file_name",
        "school",
        "school_class",
        "uploaded_by",
        "uploaded_at",
        "records_created",
        "records_updated",
        "records_failed",
    )
    ordering = ("-uploaded_at",)
