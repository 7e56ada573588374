from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "notifications"

    def ready(self):
        from .events import EventBroadcaster

        # One broadcaster per process, handed to services that publish events
        self.broadcaster = EventBroadcaster()
