import logging
from typing import Optional

from django.conf import settings
from django.db import DatabaseError
from django.utils import dateparse
from rest_framework import permissions, status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from schooling.constants import (
    ATTENDANCE_MARK_ROLES,
    STUDENT_APPROVAL_ROLES,
    STUDENT_IMPORT_ROLES,
    TIMETABLE_EDIT_ROLES,
)
from schooling.exceptions import ImportFileError, StudentStatusError, TimetableConflict
from schooling.models import School, SchoolClass, Student, Timetable
from schooling.services import (
    approve_student,
    attendance_roster,
    confirm_import,
    consolidate,
    create_timetable,
    deactivate_timetable,
    disapprove_student,
    group_slots,
    mark_attendance,
    replace_entries,
    review_stored_upload,
    store_upload,
)
from schooling.services.student_import import is_accepted_upload
from schooling.services.timetables import active_timetables_for_school, get_active_timetable
from .permissions import role_required, section_access_required
from .serializers import (
    StudentSerializer,
    TimetableCreateSerializer,
    TimetableEntriesReplaceSerializer,
    TimetableSerializer,
)

logger = logging.getLogger(__name__)


def _error(message, http_status=status.HTTP_400_BAD_REQUEST):
    return Response({"error": message}, status=http_status)


def _parse_id(value) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def _first(data, *keys):
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _lookup_school(school_id) -> Optional[School]:
    return School.objects.filter(pk=school_id).first()


def _lookup_class(class_id, school: Optional[School] = None) -> Optional[SchoolClass]:
    qs = SchoolClass.objects.filter(pk=class_id)
    if school is not None:
        qs = qs.filter(school=school)
    return qs.first()


# ---------------------------------------------------------------------------
# Bulk student import
# ---------------------------------------------------------------------------

class StudentImportValidateView(APIView):
    """
    Store an uploaded CSV of students and return every row normalized and
    validated for review. Nothing is written to the student table.
    """

    parser_classes = (MultiPartParser, FormParser)
    permission_classes = [permissions.IsAuthenticated, role_required(*STUDENT_IMPORT_ROLES)]

    def post(self, request, *args, **kwargs):
        upload = request.FILES.get("file")
        if not upload:
            return _error("No file uploaded")

        school_id = _parse_id(_first(request.data, "schoolId", "school_id"))
        class_id = _parse_id(_first(request.data, "classId", "class_id"))
        if not school_id or not class_id:
            return _error("Class ID and School ID are required")

        if not is_accepted_upload(upload):
            return _error("Invalid file type. Only CSV files are allowed.")

        max_bytes = settings.STUDENT_IMPORT_MAX_UPLOAD_BYTES
        if upload.size is not None and upload.size > max_bytes:
            return _error(f"File too large. Maximum size is {max_bytes // (1024 * 1024)} MB.")

        school = _lookup_school(school_id)
        if school is None:
            return _error("School not found", status.HTTP_404_NOT_FOUND)
        school_class = _lookup_class(class_id, school)
        if school_class is None:
            return _error("Class not found", status.HTTP_404_NOT_FOUND)

        try:
            stored = store_upload(upload, school, school_class)
        except ImportFileError as exc:
            logger.exception("Could not store student upload for school_id=%s", school.pk)
            return _error(f"Failed to process file: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR)

        try:
            payload = review_stored_upload(stored)
        except ImportFileError as exc:
            stored.discard()
            return _error(str(exc))
        except Exception:
            logger.exception("Bulk upload validation failed for %s", stored.file_name)
            stored.discard()
            return _error("Failed to process file", status.HTTP_500_INTERNAL_SERVER_ERROR)

        logger.info(
            "Validated student upload %s: %s valid, %s invalid",
            stored.file_name,
            payload["validCount"],
            payload["invalidCount"],
        )
        return Response(payload, status=status.HTTP_200_OK)


class StudentImportConfirmView(APIView):
    """Upsert the reviewed rows; each row succeeds or fails on its own."""

    parser_classes = (JSONParser,)
    permission_classes = [permissions.IsAuthenticated, role_required(*STUDENT_IMPORT_ROLES)]

    def post(self, request, *args, **kwargs):
        data = request.data
        school_id = _parse_id(_first(data, "schoolId", "school_id"))
        class_id = _parse_id(_first(data, "classId", "class_id"))
        students = data.get("students")
        if not school_id or not class_id or not isinstance(students, list):
            return _error("Invalid request data")

        school = _lookup_school(school_id)
        if school is None:
            return _error("School not found", status.HTTP_404_NOT_FOUND)
        school_class = _lookup_class(class_id, school)
        if school_class is None:
            return _error("Class not found", status.HTTP_404_NOT_FOUND)

        try:
            summary = confirm_import(
                school=school,
                school_class=school_class,
                students=students,
                uploaded_by=request.user,
                file_name=str(data.get("fileName") or ""),
            )
        except DatabaseError:
            logger.exception("Bulk upload confirm failed for school_id=%s", school.pk)
            return _error("Failed to save students", status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(summary, status=status.HTTP_200_OK)


class _StudentStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated, role_required(*STUDENT_APPROVAL_ROLES)]
    transition = None
    success_message = ""

    def post(self, request, pk, *args, **kwargs):
        student = Student.objects.filter(pk=pk).first()
        if student is None:
            return _error("Student not found", status.HTTP_404_NOT_FOUND)
        try:
            self.transition(student)
        except StudentStatusError as exc:
            return _error(str(exc))
        return Response(
            {"message": self.success_message, "student": StudentSerializer(student).data},
            status=status.HTTP_200_OK,
        )


class StudentApproveView(_StudentStatusView):
    transition = staticmethod(approve_student)
    success_message = "Student approved successfully"


class StudentDisapproveView(_StudentStatusView):
    transition = staticmethod(disapprove_student)
    success_message = "Student disapproved"


# ---------------------------------------------------------------------------
# Timetables
# ---------------------------------------------------------------------------

def _timetable_editor_permissions():
    return [
        permissions.IsAuthenticated(),
        role_required(*TIMETABLE_EDIT_ROLES)(),
        section_access_required("school")(),
    ]


def _timetable_payload(timetable: Timetable):
    timetable = Timetable.objects.select_related("school_class").prefetch_related("entries").get(pk=timetable.pk)
    return TimetableSerializer(timetable).data


class ConsolidatedTimetableView(APIView):
    """
    School-wide view of every active timetable entry. ``?group=slots`` adds the
    entries grouped by (day, period) with an overlap flag per slot.
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, school_id, *args, **kwargs):
        school = _lookup_school(school_id)
        if school is None:
            return _error("School not found", status.HTTP_404_NOT_FOUND)

        data = consolidate(school)
        if request.query_params.get("group") == "slots":
            data["slots"] = [slot.to_dict() for slot in group_slots(data["entries"])]
        return Response(data, status=status.HTTP_200_OK)


class SchoolTimetablesView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, school_id, *args, **kwargs):
        school = _lookup_school(school_id)
        if school is None:
            return _error("School not found", status.HTTP_404_NOT_FOUND)
        timetables = active_timetables_for_school(school).prefetch_related("entries")
        return Response(TimetableSerializer(timetables, many=True).data)


class ClassTimetableView(APIView):
    """Active timetable of a class, or null when it has none."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, class_id, *args, **kwargs):
        school_class = _lookup_class(class_id)
        if school_class is None:
            return _error("Class not found", status.HTTP_404_NOT_FOUND)
        timetable = get_active_timetable(school_class)
        if timetable is None:
            return Response(None)
        return Response(_timetable_payload(timetable))


class TimetableCreateView(APIView):
    def get_permissions(self):
        return _timetable_editor_permissions()

    def post(self, request, *args, **kwargs):
        data = request.data
        if not all(_first(data, key) is not None for key in ("school_id", "class_id", "periods_per_day")):
            return _error("School, class, and periods per day are required")

        serializer = TimetableCreateSerializer(data=data)
        serializer.is_valid(raise_exception=True)
        validated = serializer.validated_data

        school = _lookup_school(validated["school_id"])
        if school is None:
            return _error("School not found", status.HTTP_404_NOT_FOUND)
        school_class = _lookup_class(validated["class_id"], school)
        if school_class is None:
            return _error("Class not found", status.HTTP_404_NOT_FOUND)

        try:
            timetable = create_timetable(
                school=school,
                school_class=school_class,
                name=validated.get("name", ""),
                periods_per_day=validated["periods_per_day"],
                entries=validated.get("entries", []),
            )
        except TimetableConflict as exc:
            return _error(str(exc))

        return Response(_timetable_payload(timetable), status=status.HTTP_201_CREATED)


class TimetableDetailView(APIView):
    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.IsAuthenticated()]
        return _timetable_editor_permissions()

    def get(self, request, pk, *args, **kwargs):
        timetable = Timetable.objects.filter(pk=pk).first()
        if timetable is None:
            return _error("Timetable not found", status.HTTP_404_NOT_FOUND)
        return Response(_timetable_payload(timetable))

    def delete(self, request, pk, *args, **kwargs):
        timetable = Timetable.objects.filter(pk=pk).first()
        if timetable is None:
            return _error("Timetable not found", status.HTTP_404_NOT_FOUND)
        deactivate_timetable(timetable)
        return Response({"message": "Timetable deleted successfully"}, status=status.HTTP_200_OK)


class TimetableEntriesView(APIView):
    """Replace every entry of a timetable with the submitted list."""

    def get_permissions(self):
        return _timetable_editor_permissions()

    def put(self, request, pk, *args, **kwargs):
        timetable = Timetable.objects.filter(pk=pk).first()
        if timetable is None:
            return _error("Timetable not found", status.HTTP_404_NOT_FOUND)

        serializer = TimetableEntriesReplaceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        replace_entries(timetable, serializer.validated_data["entries"])
        return Response(_timetable_payload(timetable), status=status.HTTP_200_OK)


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------

def _parse_date(value):
    if not value:
        return None
    try:
        return dateparse.parse_date(str(value).strip())
    except ValueError:
        return None


class AttendanceRosterView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, school_id, attendance_date, *args, **kwargs):
        on_date = _parse_date(attendance_date)
        if on_date is None:
            return _error("Invalid date. Use YYYY-MM-DD.")

        school = _lookup_school(school_id)
        if school is None:
            return _error("School not found", status.HTTP_404_NOT_FOUND)

        school_class = None
        class_id = request.query_params.get("classId") or request.query_params.get("class_id")
        if class_id:
            school_class = _lookup_class(_parse_id(class_id), school)
            if school_class is None:
                return _error("Class not found", status.HTTP_404_NOT_FOUND)

        return Response(attendance_roster(school, on_date, school_class))


class AttendanceMarkView(APIView):
    permission_classes = [permissions.IsAuthenticated, role_required(*ATTENDANCE_MARK_ROLES)]

    def post(self, request, *args, **kwargs):
        data = request.data
        school_id = _parse_id(data.get("school_id"))
        records = data.get("records")
        raw_date = data.get("attendance_date")
        if not school_id or not raw_date or not isinstance(records, list) or not records:
            return _error("School, date, and attendance records are required")

        attendance_date = _parse_date(raw_date)
        if attendance_date is None:
            return _error("Invalid date. Use YYYY-MM-DD.")

        school = _lookup_school(school_id)
        if school is None:
            return _error("School not found", status.HTTP_404_NOT_FOUND)

        school_class = None
        if data.get("class_id"):
            school_class = _lookup_class(_parse_id(data.get("class_id")), school)
            if school_class is None:
                return _error("Class not found", status.HTTP_404_NOT_FOUND)

        result = mark_attendance(
            school=school,
            attendance_date=attendance_date,
            records=records,
            marked_by=request.user,
            school_class=school_class,
        )
        return Response(result, status=status.HTTP_200_OK)
