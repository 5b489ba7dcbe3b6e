"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/realtime/ - The live event connection (one per client)

Authentication:
    JWT token should be passed as query parameter: ?token=<jwt_access_token>
    or as the subprotocol pair ["jwt", <token>]. JWTAuthMiddleware attaches
    the user to the consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/realtime/", consumers.RealtimeConsumer.as_asgi()),
]
