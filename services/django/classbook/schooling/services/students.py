import logging

from schooling.exceptions import StudentStatusError
from schooling.models import ExtraStatus, Student

logger = logging.getLogger(__name__)


def approve_student(student: Student) -> Student:
    """Pending or disapproved extra students become regular approved students."""
    if student.extra_status == ExtraStatus.APPROVED:
        raise StudentStatusError("Student is already approved")
    student.extra_status = ExtraStatus.APPROVED
    student.save(update_fields=["extra_status", "updated_at"])
    logger.info("Approved student_id=%s", student.pk)
    return student


def disapprove_student(student: Student) -> Student:
    if student.extra_status != ExtraStatus.PENDING:
        raise StudentStatusError("Only students pending approval can be disapproved")
    student.extra_status = ExtraStatus.DISAPPROVED
    student.save(update_fields=["extra_status", "updated_at"])
    logger.info("Disapproved student_id=%s", student.pk)
    return student
