import tempfile
from pathlib import Path
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from schooling.models import School, SchoolClass, Student, StudentImportLog

CSV_BODY = (
    "first_name,last_name,date_of_birth,gender,parent_name,parent_contact\n"
    "Rahul,Sharma,15-05-2018,Male,Amit,9876543001\n"
    "Priya,Patel,2018-07-22,x,Rajesh,9876543002\n"
).encode()


class StudentUploadValidateViewTests(TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.media_root = Path(tmp.name)
        override = override_settings(MEDIA_ROOT=self.media_root)
        override.enable()
        self.addCleanup(override.disable)

        self.client = APIClient()
        self.user = get_user_model().objects.create_user(
            username="teacher",
            email="teacher@example.com",
            password="secret",
            role="school_teacher",
        )
        self.client.force_authenticate(self.user)
        self.school = School.objects.create(name="Green Valley")
        self.school_class = SchoolClass.objects.create(school=self.school, name="5A", grade=5, section="A")
        self.url = reverse("api-student-upload-validate")

    def _post(self, upload=None, **data):
        payload = {"schoolId": self.school.id, "classId": self.school_class.id}
        payload.update(data)
        if upload is not None:
            payload["file"] = upload
        return self.client.post(self.url, payload, format="multipart")

    def _csv(self, content=CSV_BODY, name="students.csv", content_type="text/csv"):
        return SimpleUploadedFile(name, content, content_type=content_type)

    def _stored_files(self):
        return [p for p in self.media_root.rglob("*") if p.is_file()]

    def test_valid_upload_returns_review_payload(self):
        response = self._post(self._csv())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["validCount"], 1)
        self.assertEqual(body["invalidCount"], 1)
        self.assertTrue(body["filePath"].startswith("school_student_data/Green_Valley/Grade_5_A_5A_1_"))
        self.assertTrue(body["fileName"].endswith(".csv"))

        first, second = body["students"]
        self.assertEqual(first["row"], 2)
        self.assertTrue(first["isValid"])
        self.assertEqual(first["normalized"]["date_of_birth"], "2018-05-15")
        self.assertEqual(first["normalized"]["parent_contact"], "+919876543001")
        self.assertEqual(second["row"], 3)
        self.assertEqual(second["errors"], ["Gender must be Male, Female, or Other"])

        self.assertEqual(len(self._stored_files()), 1)
        self.assertFalse(Student.objects.exists())

    def test_missing_file_returns_400(self):
        response = self._post()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "No file uploaded")

    def test_missing_identifiers_return_400(self):
        response = self.client.post(self.url, {"file": self._csv()}, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Class ID and School ID are required")
        self.assertEqual(self._stored_files(), [])

    def test_non_csv_file_rejected(self):
        upload = self._csv(name="students.xlsx", content_type="application/vnd.ms-excel")
        response = self._post(upload)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Only CSV files are allowed", response.json()["error"])

    @override_settings(STUDENT_IMPORT_MAX_UPLOAD_BYTES=16)
    def test_oversized_file_rejected(self):
        response = self._post(self._csv())

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("File too large", response.json()["error"])
        self.assertEqual(self._stored_files(), [])

    def test_unknown_school_returns_404(self):
        response = self._post(self._csv(), schoolId=999999)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "School not found")

    def test_class_from_another_school_returns_404(self):
        other = School.objects.create(name="Hill Top")
        foreign_class = SchoolClass.objects.create(school=other, name="1A", grade=1)
        response = self._post(self._csv(), classId=foreign_class.id)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Class not found")

    @patch("schooling.services.student_import.parse_student_csv")
    def test_parse_failure_returns_400_and_removes_file(self, mock_parse):
        mock_parse.return_value = {"status": "error", "message": "Failed to parse CSV file: bad quoting"}

        response = self._post(self._csv())

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Failed to parse CSV file: bad quoting")
        self.assertEqual(self._stored_files(), [])

    @patch("schooling.api.views.review_stored_upload")
    def test_unexpected_error_returns_500_and_removes_file(self, mock_review):
        mock_review.side_effect = RuntimeError("boom")

        with self.assertLogs("schooling.api.views", level="ERROR"):
            response = self._post(self._csv())

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json()["error"], "Failed to process file")
        self.assertEqual(self._stored_files(), [])

    def test_role_outside_allow_list_forbidden(self):
        self.user.role = "trainer"
        self.user.save(update_fields=["role"])

        response = self._post(self._csv())

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_super_admin_passes_role_gate(self):
        self.user.role = "super_admin"
        self.user.save(update_fields=["role"])

        response = self._post(self._csv())

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_anonymous_rejected(self):
        self.client.force_authenticate(None)

        response = self._post(self._csv())

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class StudentUploadConfirmViewTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = get_user_model().objects.create_user(
            username="owner",
            email="owner@example.com",
            password="secret",
            role="owner",
        )
        self.client.force_authenticate(self.user)
        self.school = School.objects.create(name="Green Valley")
        self.school_class = SchoolClass.objects.create(school=self.school, name="5A", grade=5, section="A")
        self.url = reverse("api-student-upload-confirm")
        self.student = {
            "first_name": "Rahul",
            "last_name": "Sharma",
            "date_of_birth": "2018-05-15",
            "gender": "Male",
            "parent_name": "Amit",
            "parent_contact": "+919876543001",
        }

    def _post(self, **overrides):
        payload = {
            "schoolId": self.school.id,
            "classId": self.school_class.id,
            "students": [self.student],
            "fileName": "Grade_5_A_5A_1.csv",
        }
        payload.update(overrides)
        return self.client.post(self.url, payload, format="json")

    def test_confirm_creates_then_updates(self):
        first = self._post()
        second = self._post()

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.json(), {"success": [{"action": "created", "name": "Rahul Sharma"}], "errors": []})
        self.assertEqual(second.json()["success"], [{"action": "updated", "name": "Rahul Sharma"}])
        self.assertEqual(Student.objects.count(), 1)
        self.assertEqual(StudentImportLog.objects.count(), 2)

    def test_students_must_be_a_list(self):
        response = self._post(students="nope")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Invalid request data")

    def test_missing_class_returns_400(self):
        response = self._post(classId=None)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_class_returns_404(self):
        response = self._post(classId=999999)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Class not found")

    @patch("schooling.api.views.confirm_import")
    def test_database_failure_returns_500(self, mock_confirm):
        from django.db import DatabaseError

        mock_confirm.side_effect = DatabaseError("gone")

        with self.assertLogs("schooling.api.views", level="ERROR"):
            response = self._post()

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json()["error"], "Failed to save students")
