from datetime import date
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from schooling.models import ExtraStatus, School, SchoolClass, Student, StudentImportLog, StudentType
from schooling.services import student_import
from schooling.services.student_import import confirm_import


def _row(**overrides):
    row = {
        "first_name": "Rahul",
        "last_name": "Sharma",
        "date_of_birth": "2018-05-15",
        "gender": "Male",
        "parent_name": "Amit",
        "parent_contact": "+919876543001",
    }
    row.update(overrides)
    return row


class ConfirmImportTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(
            username="teacher",
            email="teacher@example.com",
            password="secret",
            role="school_teacher",
        )
        self.school = School.objects.create(name="Green Valley")
        self.other_school = School.objects.create(name="Hill Top")
        self.class_a = SchoolClass.objects.create(school=self.school, name="5A", grade=5, section="A")
        self.class_b = SchoolClass.objects.create(school=self.school, name="5B", grade=5, section="B")

    def test_new_student_is_created(self):
        result = confirm_import(
            school=self.school,
            school_class=self.class_a,
            students=[_row()],
            uploaded_by=self.user,
        )

        self.assertEqual(result, {"success": [{"action": "created", "name": "Rahul Sharma"}], "errors": []})
        student = Student.objects.get()
        self.assertEqual(student.date_of_birth, date(2018, 5, 15))
        self.assertEqual(student.school_class, self.class_a)
        self.assertEqual(student.student_type, StudentType.SCHOOL)
        self.assertEqual(student.extra_status, ExtraStatus.APPROVED)
        self.assertTrue(student.is_active)
        self.assertEqual(student.enrollment_date, timezone.localdate())
        self.assertEqual(student.added_by, self.user)

    def test_same_key_twice_updates_instead_of_duplicating(self):
        confirm_import(school=self.school, school_class=self.class_a, students=[_row()])
        result = confirm_import(
            school=self.school,
            school_class=self.class_b,
            students=[_row(parent_name="Sunita", parent_contact="+919876500000", gender="male")],
        )

        self.assertEqual(result["success"], [{"action": "updated", "name": "Rahul Sharma"}])
        self.assertEqual(Student.objects.count(), 1)
        student = Student.objects.get()
        self.assertEqual(student.school_class, self.class_b)
        self.assertEqual(student.parent_name, "Sunita")
        self.assertEqual(student.parent_contact, "+919876500000")
        self.assertEqual(student.gender, "Male")

    def test_duplicates_inside_one_batch_collapse(self):
        result = confirm_import(school=self.school, school_class=self.class_a, students=[_row(), _row()])

        self.assertEqual([item["action"] for item in result["success"]], ["created", "updated"])
        self.assertEqual(Student.objects.count(), 1)

    def test_key_is_scoped_to_school_and_case_sensitive(self):
        confirm_import(school=self.school, school_class=self.class_a, students=[_row()])
        other_class = SchoolClass.objects.create(school=self.other_school, name="1", grade=1)
        confirm_import(school=self.other_school, school_class=other_class, students=[_row()])
        confirm_import(school=self.school, school_class=self.class_a, students=[_row(first_name="rahul")])

        self.assertEqual(Student.objects.count(), 3)

    def test_day_first_dates_are_accepted(self):
        confirm_import(school=self.school, school_class=self.class_a, students=[_row(date_of_birth="15-05-2018")])
        self.assertEqual(Student.objects.get().date_of_birth, date(2018, 5, 15))

    def test_raw_phone_is_stored_normalized(self):
        confirm_import(school=self.school, school_class=self.class_a, students=[_row(parent_contact="98765 43001")])
        self.assertEqual(Student.objects.get().parent_contact, "+919876543001")

    def test_failing_row_does_not_block_siblings(self):
        real_upsert = student_import._upsert_student

        def flaky(school, school_class, student, added_by=None):
            if student["first_name"] == "Broken":
                raise DatabaseError("connection reset")
            return real_upsert(school, school_class, student, added_by)

        rows = [_row(), _row(first_name="Broken"), _row(first_name="Priya", last_name="Patel")]
        with mock.patch("schooling.services.student_import._upsert_student", side_effect=flaky):
            result = confirm_import(school=self.school, school_class=self.class_a, students=rows)

        self.assertEqual([item["name"] for item in result["success"]], ["Rahul Sharma", "Priya Patel"])
        self.assertEqual(len(result["errors"]), 1)
        self.assertEqual(result["errors"][0]["message"], "Database error: connection reset")
        self.assertEqual(result["errors"][0]["student"]["first_name"], "Broken")
        self.assertEqual(Student.objects.count(), 2)

    def test_invalid_rows_are_reported_not_raised(self):
        rows = [_row(date_of_birth="31-02-2018"), _row(first_name=""), "not-a-row", _row(gender="x")]
        result = confirm_import(school=self.school, school_class=self.class_a, students=rows)

        self.assertEqual(result["success"], [])
        self.assertEqual(len(result["errors"]), 4)
        self.assertIn("Invalid date of birth", result["errors"][0]["message"])
        self.assertIn("First name is required", result["errors"][1]["message"])
        self.assertEqual(result["errors"][2], {"message": "Invalid student data", "student": "not-a-row"})
        self.assertIn("Gender must be Male, Female, or Other", result["errors"][3]["message"])
        self.assertFalse(Student.objects.exists())

    def test_import_log_records_counts(self):
        confirm_import(school=self.school, school_class=self.class_a, students=[_row()])
        confirm_import(
            school=self.school,
            school_class=self.class_a,
            students=[_row(), _row(first_name="Priya"), _row(first_name="")],
            uploaded_by=self.user,
            file_name="Grade_5_A_5A_1.csv",
        )

        log = StudentImportLog.objects.order_by("-id").first()
        self.assertEqual(log.records_created, 1)
        self.assertEqual(log.records_updated, 1)
        self.assertEqual(log.records_failed, 1)
        self.assertEqual(log.file_name, "Grade_5_A_5A_1.csv")
        self.assertEqual(log.uploaded_by, self.user)
        self.assertEqual(StudentImportLog.objects.count(), 2)
