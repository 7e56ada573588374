from django.urls import path

from .views import AdminNotificationListView, MarkNotificationReadView

app_name = "notifications"

urlpatterns = [
    path("", AdminNotificationListView.as_view(), name="notification-list"),
    path("<uuid:pk>/read/", MarkNotificationReadView.as_view(), name="notification-read"),
]
