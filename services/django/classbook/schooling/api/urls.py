from django.urls import path

from accounts.api import CurrentUserView, ObtainAuthTokenView, SessionLogoutView
from schooling.views import healthz_view

from .views import (
    AttendanceMarkView,
    AttendanceRosterView,
    ClassTimetableView,
    ConsolidatedTimetableView,
    SchoolTimetablesView,
    StudentApproveView,
    StudentDisapproveView,
    StudentImportConfirmView,
    StudentImportValidateView,
    TimetableCreateView,
    TimetableDetailView,
    TimetableEntriesView,
)

urlpatterns = [
    path("auth/token/login/", ObtainAuthTokenView.as_view(), name="api-login"),
    path("auth/me/", CurrentUserView.as_view(), name="api-auth-me"),
    path("auth/logout/", SessionLogoutView.as_view(), name="api-auth-logout"),
    path("healthz/", healthz_view, name="api-healthz"),
    path("students/bulk-upload/validate/", StudentImportValidateView.as_view(), name="api-student-upload-validate"),
    path("students/bulk-upload/confirm/", StudentImportConfirmView.as_view(), name="api-student-upload-confirm"),
    path("students/<int:pk>/approve/", StudentApproveView.as_view(), name="api-student-approve"),
    path("students/<int:pk>/disapprove/", StudentDisapproveView.as_view(), name="api-student-disapprove"),
    path(
        "timetables/school/<int:school_id>/consolidated/",
        ConsolidatedTimetableView.as_view(),
        name="api-timetable-consolidated",
    ),
    path("timetables/school/<int:school_id>/", SchoolTimetablesView.as_view(), name="api-school-timetables"),
    path("timetables/class/<int:class_id>/", ClassTimetableView.as_view(), name="api-class-timetable"),
    path("timetables/", TimetableCreateView.as_view(), name="api-timetable-create"),
    path("timetables/<int:pk>/", TimetableDetailView.as_view(), name="api-timetable-detail"),
    path("timetables/<int:pk>/entries/", TimetableEntriesView.as_view(), name="api-timetable-entries"),
    path(
        "attendance/school/<int:school_id>/students/<str:attendance_date>/",
        AttendanceRosterView.as_view(),
        name="api-attendance-roster",
    ),
    path("attendance/school/mark/", AttendanceMarkView.as_view(), name="api-attendance-mark"),
]
