from django.urls import path

from .views import StreamTokenView, admin_orders_stream

app_name = "order_stream"

urlpatterns = [
    path("stream-token/", StreamTokenView.as_view(), name="stream-token"),
    path("stream/", admin_orders_stream, name="stream"),
]
