"""
Chat app for real-time messaging.

This app handles:
- Groups (membership, moderation, the global group)
- Direct and group message history, editing and deletion
- The live event surface (chat.consumers, chat.realtime)

Related apps:
    - accounts: User model, contacts

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the WebSocket handler, routing.py for its URL,
    and the realtime package for presence, fan-out and call signaling.

Usage:
    from chat.services import GroupService, MessageService

    result = GroupService.create_group(creator=user, name="Climbing")
    result = MessageService.send_direct(sender=user, receiver_code="4821", content="Hi")
"""
