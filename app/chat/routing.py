"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - Single connection per client; chats are joined with events

Authentication:
    JWT token passed as ?token=<jwt_access_token> or as the subprotocol pair
    ["jwt", <token>]. JWTAuthMiddleware attaches the user to the scope.

The connection registry shared by every consumer instance is created
here and cleared by the ``lifespan`` handler below, which config.asgi mounts
for the "lifespan" protocol.
"""

from django.urls import path

from chat import consumers
from chat.registry import ConnectionRegistry

connection_registry = ConnectionRegistry()

websocket_urlpatterns = [
    path(
        "ws/chat/",
        consumers.ChatConsumer.as_asgi(registry=connection_registry),
    ),
]


async def lifespan(scope, receive, send):
    """
    ASGI lifespan handler.

    Startup needs no work; shutdown drops every registry entry so no
    stale connection outlives the process's channel layer.
    """
    while True:
        message = await receive()

        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            connection_registry.clear()
            await send({"type": "lifespan.shutdown.complete"})
            return
