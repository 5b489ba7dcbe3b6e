"""
Chat application configuration.

This app provides the chat system with:
- Groups with admins, members, muted and banned sets
- Direct and group messages with tombstone deletion
- Live delivery, presence and call signaling over WebSockets
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
