"""
Tests for chat app.

This package contains test modules for:
- test_models.py / test_services.py: Groups, messages and moderation
- test_views.py: REST API endpoint tests
- test_registry.py, test_lifecycle.py, test_fanout.py, test_signaling.py,
  test_calls.py, test_events.py: Realtime core against fakes.py
- test_consumers.py, test_middleware.py, test_store.py, test_lifespan.py:
  Realtime core wired to Channels and the database

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
