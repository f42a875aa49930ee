class SchoolingError(Exception):
    """Base class for errors raised by the schooling services."""


class ImportFileError(SchoolingError):
    """The uploaded student file could not be stored or read."""


class TimetableConflict(SchoolingError):
    """The class already has an active timetable."""

    def __init__(self, school_class, existing=None):
        self.school_class = school_class
        self.existing = existing
        super().__init__("Timetable already exists for this class")


class StudentStatusError(SchoolingError):
    """The requested approval change does not apply to the student's current status."""
