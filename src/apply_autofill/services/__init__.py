"""Collaborators outside the page: the profile service and outcome notifications."""

from apply_autofill.services.notifier import LogNotifier, Notifier, WebhookNotifier
from apply_autofill.services.profile import FileProfileClient, ProfileClient, RemoteProfileClient

__all__ = [
    "FileProfileClient",
    "LogNotifier",
    "Notifier",
    "ProfileClient",
    "RemoteProfileClient",
    "WebhookNotifier",
]
