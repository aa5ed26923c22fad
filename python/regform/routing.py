"""
WebSocket routing for the registration form.

Example::

    from channels.routing import ProtocolTypeRouter, URLRouter
    from channels.sessions import SessionMiddlewareStack
    from regform.routing import websocket_urlpatterns

    application = ProtocolTypeRouter({
        "http": get_asgi_application(),
        "websocket": SessionMiddlewareStack(URLRouter(websocket_urlpatterns)),
    })
"""

from django.urls import path

from .consumers import RegistrationFormConsumer

websocket_urlpatterns = [
    path("ws/register/", RegistrationFormConsumer.as_asgi()),
]
