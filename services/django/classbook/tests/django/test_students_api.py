from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from schooling.models import ExtraStatus, School, Student


class StudentApprovalApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.teacher = get_user_model().objects.create_user(
            username="teacher", email="teacher@example.com", password="secret", role="school_teacher"
        )
        self.client.force_authenticate(self.teacher)
        school = School.objects.create(name="Green Valley")
        self.pending = Student.objects.create(
            first_name="Asha", last_name="Rao", school=school, extra_status=ExtraStatus.PENDING
        )

    def test_approve_pending_student(self):
        response = self.client.post(reverse("api-student-approve", args=[self.pending.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Student approved successfully")
        self.assertFalse(response.data["student"]["is_extra"])
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.extra_status, ExtraStatus.APPROVED)

    def test_approve_twice_rejected(self):
        self.client.post(reverse("api-student-approve", args=[self.pending.id]))

        response = self.client.post(reverse("api-student-approve", args=[self.pending.id]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Student is already approved")

    def test_disapprove_pending_student(self):
        response = self.client.post(reverse("api-student-disapprove", args=[self.pending.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.extra_status, ExtraStatus.DISAPPROVED)
        self.assertTrue(self.pending.is_extra)

    def test_disapproved_student_can_still_be_approved(self):
        self.client.post(reverse("api-student-disapprove", args=[self.pending.id]))

        response = self.client.post(reverse("api-student-approve", args=[self.pending.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_only_pending_students_can_be_disapproved(self):
        self.pending.extra_status = ExtraStatus.APPROVED
        self.pending.save()

        response = self.client.post(reverse("api-student-disapprove", args=[self.pending.id]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Only students pending approval can be disapproved")

    def test_unknown_student_returns_404(self):
        response = self.client.post(reverse("api-student-approve", args=[999999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_trainer_head_cannot_approve(self):
        self.teacher.role = "trainer_head"
        self.teacher.save(update_fields=["role"])

        response = self.client.post(reverse("api-student-approve", args=[self.pending.id]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(str(response.data["detail"]), "Access denied. Insufficient permissions.")
