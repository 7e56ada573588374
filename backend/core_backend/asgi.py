import os

# Set the Django settings module first
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core_backend.settings")

from channels.routing import ProtocolTypeRouter
from django.core.asgi import get_asgi_application

# Initialize Django ASGI application early to ensure AppRegistry is populated
# before importing code that may import ORM models.
django_asgi_app = get_asgi_application()

# The admin order stream is plain HTTP (server-sent events); the channel
# layer is used only as the event bus behind it.
application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
    }
)
