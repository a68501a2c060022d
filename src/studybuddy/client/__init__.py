"""Python client for StudyBuddy: API calls, message board state and realtime updates."""

from studybuddy.client.api_client import StudyBuddyClient
from studybuddy.client.message_board import Attachment, BoardMessage, Draft, MessageBoard
from studybuddy.client.realtime_channel import RealtimeChannel

__all__ = [
    "Attachment",
    "BoardMessage",
    "Draft",
    "MessageBoard",
    "RealtimeChannel",
    "StudyBuddyClient",
]
