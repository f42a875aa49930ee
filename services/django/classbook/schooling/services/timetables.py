import logging
from typing import Any, Dict, Iterable, Optional

from django.db import transaction

from schooling.exceptions import TimetableConflict
from schooling.models import School, SchoolClass, Timetable, TimetableEntry

logger = logging.getLogger(__name__)

ENTRY_FIELDS = (
    "day_of_week",
    "period_number",
    "start_time",
    "end_time",
    "subject",
    "room_number",
    "teacher",
)


def get_active_timetable(school_class: SchoolClass) -> Optional[Timetable]:
    return (
        Timetable.objects.filter(school_class=school_class, is_active=True)
        .order_by("-created_at", "-id")
        .first()
    )


def active_timetables_for_school(school: School):
    return (
        Timetable.objects.filter(school=school, is_active=True)
        .select_related("school_class")
        .order_by("school_class__grade", "school_class__section", "id")
    )


def _create_entries(timetable: Timetable, entries: Iterable[Dict[str, Any]]) -> int:
    count = 0
    for entry in entries:
        values = {key: entry[key] for key in ENTRY_FIELDS if key in entry}
        values.setdefault("subject", "")
        values.setdefault("room_number", "")
        if values["subject"] is None:
            values["subject"] = ""
        if values["room_number"] is None:
            values["room_number"] = ""
        TimetableEntry.objects.create(timetable=timetable, **values)
        count += 1
    return count


@transaction.atomic
def create_timetable(
    *,
    school: School,
    school_class: SchoolClass,
    periods_per_day: int,
    name: str = "",
    entries: Iterable[Dict[str, Any]] = (),
) -> Timetable:
    """
    Create the class's timetable and its entries in one transaction.

    Raises TimetableConflict, without writing anything, when the class already
    has an active timetable.
    """
    existing = get_active_timetable(school_class)
    if existing is not None:
        raise TimetableConflict(school_class, existing)

    timetable = Timetable.objects.create(
        school=school,
        school_class=school_class,
        name=name or "",
        periods_per_day=periods_per_day,
    )
    count = _create_entries(timetable, entries)
    logger.info(
        "Created timetable_id=%s for class_id=%s with %s entries",
        timetable.pk,
        school_class.pk,
        count,
    )
    return timetable


@transaction.atomic
def replace_entries(timetable: Timetable, entries: Iterable[Dict[str, Any]]) -> Timetable:
    """Full replace: every previous entry is deleted before the new ones are inserted."""
    deleted, _ = timetable.entries.all().delete()
    count = _create_entries(timetable, entries)
    timetable.save(update_fields=["updated_at"])
    logger.info(
        "Replaced entries of timetable_id=%s: %s removed, %s added",
        timetable.pk,
        deleted,
        count,
    )
    return timetable


def deactivate_timetable(timetable: Timetable) -> Timetable:
    if timetable.is_active:
        timetable.is_active = False
        timetable.save(update_fields=["is_active", "updated_at"])
        logger.info("Deactivated timetable_id=%s", timetable.pk)
    return timetable
