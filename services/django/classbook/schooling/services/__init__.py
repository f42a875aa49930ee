from .attendance import attendance_roster, mark_attendance
from .student_import import confirm_import, review_stored_upload, store_upload
from .students import approve_student, disapprove_student
from .timetable_consolidation import consolidate, group_slots
from .timetables import create_timetable, deactivate_timetable, replace_entries
