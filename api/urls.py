"""
URL configuration for the api app.

All URLs are mounted under /api/ in boot/urls.py.
"""

from django.urls import path

from api.views import auth, departments, files, stats, users

app_name = "api"

urlpatterns = [
    # Authentication
    path("auth/login/", auth.login_view, name="login"),
    path("auth/logout/", auth.logout_view, name="logout"),
    path("auth/validate/", auth.validate_view, name="validate"),
    # Files
    path("files/", files.file_list_view, name="files"),
    path("files/user/<int:user_id>/", files.user_files_view, name="user-files"),
    path("files/<int:pk>/", files.file_detail_view, name="file-detail"),
    path("files/<int:pk>/download/", files.file_download_view, name="file-download"),
    path("files/<int:pk>/approve/", files.file_approve_view, name="file-approve"),
    path("files/<int:pk>/reject/", files.file_reject_view, name="file-reject"),
    # Dashboard
    path("stats/", stats.stats_view, name="stats"),
    path("activities/", stats.activity_view, name="activities"),
    # Administration
    path("users/", users.user_list_view, name="users"),
    path("users/<int:pk>/", users.user_detail_view, name="user-detail"),
    path("departments/", departments.department_list_view, name="departments"),
    path(
        "departments/<int:pk>/",
        departments.department_detail_view,
        name="department-detail",
    ),
]
