from django.conf import settings
from django.db import models
from django.utils import timezone


# ---------- ENUM TYPES ----------

class DayOfWeek(models.TextChoices):
    MONDAY = "monday", "Monday"
    TUESDAY = "tuesday", "Tuesday"
    WEDNESDAY = "wednesday", "Wednesday"
    THURSDAY = "thursday", "Thursday"
    FRIDAY = "friday", "Friday"
    SATURDAY = "saturday", "Saturday"
    SUNDAY = "sunday", "Sunday"


# Monday first; used wherever entries are ordered by weekday rather than alphabetically.
DAY_ORDER = {value: index for index, value in enumerate(DayOfWeek.values)}


class Gender(models.TextChoices):
    MALE = "Male", "Male"
    FEMALE = "Female", "Female"
    OTHER = "Other", "Other"


class StudentType(models.TextChoices):
    SCHOOL = "school", "School"
    CENTER = "center", "Center"


class ExtraStatus(models.TextChoices):
    """
    Approval state of a student. Regular enrolments are approved; students
    added outside the normal flow (e.g. by a trainer) start as pending.
    """

    APPROVED = "approved", "Approved"
    PENDING = "pending", "Pending approval"
    DISAPPROVED = "disapproved", "Disapproved"


class AttendanceStatus(models.TextChoices):
    PRESENT = "present", "Present"
    ABSENT = "absent", "Absent"
    LATE = "late", "Late"
    EXCUSED = "excused", "Excused"


# ---------- MAIN TABLES ----------


class School(models.Model):
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True)
    contact_phone = models.CharField(max_length=30, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class SchoolClass(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="classes")
    name = models.CharField(max_length=100)
    grade = models.PositiveIntegerField()
    section = models.CharField(max_length=10, blank=True)
    room_number = models.CharField(max_length=30, blank=True)
    academic_year = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["grade", "section", "name"]
        verbose_name = "class"
        verbose_name_plural = "classes"

    def __str__(self):
        return self.name


class Timetable(models.Model):
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="timetables")
    school_class = models.ForeignKey(SchoolClass, on_delete=models.CASCADE, related_name="timetables")
    name = models.CharField(max_length=255, blank=True)
    periods_per_day = models.PositiveIntegerField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=["school", "is_active"], name="timetable_school_active_idx")]

    def __str__(self):
        return self.name or f"{self.school_class} timetable"


class TimetableEntry(models.Model):
    # (day, period) is deliberately not unique: overlaps are surfaced, not rejected.
    timetable = models.ForeignKey(Timetable, on_delete=models.CASCADE, related_name="entries")
    day_of_week = models.CharField(max_length=10, choices=DayOfWeek.choices)
    period_number = models.PositiveIntegerField()
    start_time = models.TimeField(blank=True, null=True)
    end_time = models.TimeField(blank=True, null=True)
    subject = models.CharField(max_length=255, blank=True)
    room_number = models.CharField(max_length=30, blank=True)
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="timetable_entries",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["timetable_id", "period_number", "id"]
        verbose_name_plural = "timetable entries"

    def __str__(self):
        return f"{self.timetable} {self.day_of_week} P{self.period_number}"


class Student(models.Model):
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)
    student_type = models.CharField(max_length=10, choices=StudentType.choices, default=StudentType.SCHOOL)
    school = models.ForeignKey(
        School,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="students",
    )
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="students",
    )
    parent_name = models.CharField(max_length=255, blank=True)
    parent_contact = models.CharField(max_length=30, blank=True)
    parent_email = models.EmailField(blank=True)
    parent_address = models.TextField(blank=True)
    enrollment_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    extra_status = models.CharField(
        max_length=15,
        choices=ExtraStatus.choices,
        default=ExtraStatus.APPROVED,
    )
    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="added_students",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["first_name", "last_name"]
        indexes = [
            models.Index(fields=["school", "first_name", "last_name", "date_of_birth"], name="student_dedup_idx"),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_extra(self) -> bool:
        return self.extra_status != ExtraStatus.APPROVED


class Attendance(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="attendance")
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="attendance")
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="attendance",
    )
    timetable_entry = models.ForeignKey(
        TimetableEntry,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="attendance",
    )
    period_number = models.PositiveIntegerField(null=True, blank=True)
    attendance_date = models.DateField()
    status = models.CharField(max_length=10, choices=AttendanceStatus.choices)
    remarks = models.TextField(blank=True)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="marked_attendance",
    )
    marked_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-attendance_date", "period_number"]
        indexes = [models.Index(fields=["school", "attendance_date"], name="attendance_school_date_idx")]

    def __str__(self):
        return f"{self.student} {self.attendance_date}: {self.status}"


class StudentImportLog(models.Model):  # upload history for bulk student imports
    school = models.ForeignKey(School, on_delete=models.CASCADE, related_name="import_logs")
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        null=True,
        related_name="import_logs",
    )
    file_name = models.CharField(max_length=255, blank=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="student_import_logs",
        on_delete=models.SET_NULL,
        null=True,
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)
    records_created = models.IntegerField(default=0)
    records_updated = models.IntegerField(default=0)
    records_failed = models.IntegerField(default=0)

    class Meta:
        ordering = ["-uploaded_at"]

    def __str__(self):
        return f"{self.file_name or 'import'} by {self.uploaded_by} on {self.uploaded_at:%Y-%m-%d %H:%M}"
