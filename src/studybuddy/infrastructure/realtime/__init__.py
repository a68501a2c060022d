"""Realtime notifications: connection registry, presence and change fan-out."""
