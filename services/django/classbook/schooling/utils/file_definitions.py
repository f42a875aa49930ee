# schooling/utils/file_definitions.py

"""
Canonical fields of a bulk student upload. Every other column in the sheet is
carried through untouched as an "extra" field.
"""

STUDENT_FIELDS = (
    "first_name",
    "last_name",
    "date_of_birth",
    "gender",
    "parent_name",
    "parent_contact",
)
