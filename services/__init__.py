"""
Services Module - Runtime services for Reihtuag
===============================================

This module provides the message channel: connection registry,
event dispatch and reply broadcast.
"""

from .channel import MessageChannel, Connection, new_connection_id

__all__ = [
    "MessageChannel",
    "Connection",
    "new_connection_id",
]
