from dataclasses import dataclass, field
from itertools import groupby
from typing import Any, Dict, Iterable, List

from django.conf import settings
from django.db.models import Case, IntegerField, Max, Value, When

from schooling.constants import DEFAULT_MAX_PERIODS
from schooling.models import DAY_ORDER, School, Timetable, TimetableEntry


def _default_max_periods() -> int:
    return getattr(settings, "TIMETABLE_DEFAULT_MAX_PERIODS", DEFAULT_MAX_PERIODS)


def _day_index():
    return Case(
        *[When(day_of_week=day, then=Value(index)) for day, index in DAY_ORDER.items()],
        default=Value(len(DAY_ORDER)),
        output_field=IntegerField(),
    )


def _format_time(value):
    return value.strftime("%H:%M:%S") if value else None


def _annotated_entry(entry: TimetableEntry) -> Dict[str, Any]:
    timetable = entry.timetable
    school_class = timetable.school_class
    return {
        "id": entry.id,
        "timetable_id": timetable.id,
        "day_of_week": entry.day_of_week,
        "period_number": entry.period_number,
        "start_time": _format_time(entry.start_time),
        "end_time": _format_time(entry.end_time),
        "subject": entry.subject,
        "room_number": entry.room_number,
        "teacher_id": entry.teacher_id,
        "class_id": school_class.id,
        "class_name": school_class.name,
        "grade": school_class.grade,
        "section": school_class.section,
        "periods_per_day": timetable.periods_per_day,
    }


def consolidate(school: School) -> Dict[str, Any]:
    """
    Flatten every active entry of the school's active timetables into one list.

    Entries are ordered by weekday (Monday first), period, class grade and
    section. Nothing is validated: a period beyond its timetable's
    ``periods_per_day`` is returned as stored. ``maxPeriods`` is the widest
    active timetable, or the configured default when there is none.
    """
    entries = (
        TimetableEntry.objects.filter(
            is_active=True,
            timetable__is_active=True,
            timetable__school=school,
        )
        .select_related("timetable__school_class")
        .annotate(day_index=_day_index())
        .order_by(
            "day_index",
            "period_number",
            "timetable__school_class__grade",
            "timetable__school_class__section",
            "id",
        )
    )

    max_periods = Timetable.objects.filter(school=school, is_active=True).aggregate(
        max_periods=Max("periods_per_day")
    )["max_periods"]

    return {
        "entries": [_annotated_entry(entry) for entry in entries],
        "maxPeriods": max_periods or _default_max_periods(),
    }


@dataclass
class ConsolidatedSlot:
    day_of_week: str
    period_number: int
    entries: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_overlap(self) -> bool:
        return len(self.entries) > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day_of_week": self.day_of_week,
            "period_number": self.period_number,
            "entries": self.entries,
            "has_overlap": self.has_overlap,
        }


def _slot_key(entry: Dict[str, Any]):
    return (
        DAY_ORDER.get(entry["day_of_week"], len(DAY_ORDER)),
        entry["period_number"],
    )


def group_slots(entries: Iterable[Dict[str, Any]]) -> List[ConsolidatedSlot]:
    """Group annotated entries by (day, period). Input order is kept inside a slot."""
    ordered = sorted(entries, key=_slot_key)
    slots = []
    for _key, group in groupby(ordered, key=_slot_key):
        members = list(group)
        slots.append(
            ConsolidatedSlot(
                day_of_week=members[0]["day_of_week"],
                period_number=members[0]["period_number"],
                entries=members,
            )
        )
    return slots
