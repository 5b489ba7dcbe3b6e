"""
Pagination classes for chat API.

Cursor-based pagination for message history:
- Stable results while new messages arrive
- No offset calculation needed

Design Decisions:
    - Messages ordered oldest-first for natural reading flow
    - Cursors encode created_at, with id as the tie-breaker
"""

from rest_framework.pagination import CursorPagination

from chat.constants import MESSAGE_CONFIG


class MessageCursorPagination(CursorPagination):
    """
    Cursor pagination for direct and group history.

    Query parameters:
        cursor: Encoded cursor for position
        page_size: Number of messages (optional override)
    """

    page_size = MESSAGE_CONFIG.DEFAULT_PAGE_SIZE
    max_page_size = MESSAGE_CONFIG.MAX_PAGE_SIZE
    page_size_query_param = "page_size"
    ordering = ("created_at", "id")
    cursor_query_param = "cursor"
