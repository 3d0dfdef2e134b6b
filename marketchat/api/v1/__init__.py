"""
API v1 routes.
"""
from marketchat.api.v1 import conversations, messages

__all__ = ["conversations", "messages"]
