# taskmarket/asgi.py
import logging
import os

from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "taskmarket.settings")

logger = logging.getLogger(__name__)

# 1) Always build plain Django HTTP app first
django_asgi_app = get_asgi_application()

# 2) Start with HTTP only; add WS lazily
application = ProtocolTypeRouter({
    "http": django_asgi_app,
})


# 3) Lazily attach websocket router so a bad import doesn't kill ASGI
def _attach_websocket(application):
    try:
        from channels.auth import AuthMiddlewareStack
        from channels.routing import URLRouter
        from taskmarket.routing import websocket_urlpatterns

        application.application_mapping["websocket"] = AuthMiddlewareStack(
            URLRouter(websocket_urlpatterns or [])
        )
    except ImportError:
        logger.exception("Websocket stack not attached")


_attach_websocket(application)
