"""Push notification delivery through FCM using a Google service account."""

__version__ = "1.0.0"
