"""
Maps messy column names from uploaded student sheets to canonical internal names.
Canonical names are used throughout parsing, normalization and validation.
"""

EQUIVALENT_COLUMNS = {
    "first_name": [
        "first name", "firstname", "first", "given name", "student first name"
    ],

    "last_name": [
        "last name", "lastname", "surname", "family name", "student last name"
    ],

    "date_of_birth": [
        "dob", "d.o.b", "date of birth", "birth date", "birthdate", "birthday"
    ],

    "gender": [
        "gender", "sex"
    ],

    "parent_name": [
        "parent name", "parent", "guardian", "guardian name", "father name",
        "mother name", "parent/guardian name"
    ],

    "parent_contact": [
        "parent contact", "parent phone", "parent mobile", "parent phone number",
        "guardian contact", "guardian phone", "contact", "contact number",
        "phone", "phone number", "mobile", "mobile number"
    ],
}
