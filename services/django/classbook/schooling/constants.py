from accounts.models import Role

# Fallback width of the consolidated grid when a school has no active timetables.
DEFAULT_MAX_PERIODS = 8

STUDENT_DATA_DIR = "school_student_data"

ALLOWED_UPLOAD_CONTENT_TYPES = ("text/csv",)
ALLOWED_UPLOAD_EXTENSIONS = (".csv",)

# Role allow-lists per endpoint group. super_admin passes every gate.
STUDENT_IMPORT_ROLES = (
    Role.DEVELOPER,
    Role.SCHOOL_TEACHER,
    Role.TRAINER_HEAD,
    Role.OWNER,
)
STUDENT_APPROVAL_ROLES = (Role.DEVELOPER, Role.OWNER, Role.SCHOOL_TEACHER)
TIMETABLE_EDIT_ROLES = (Role.DEVELOPER, Role.OWNER, Role.SCHOOL_TEACHER)
ATTENDANCE_MARK_ROLES = (Role.DEVELOPER, Role.TRAINER, Role.TRAINER_HEAD)
