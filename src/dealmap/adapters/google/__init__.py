from dealmap.adapters.google.client import GoogleAuthError, GoogleClient, GoogleError
from dealmap.adapters.google.normalize import calendar_candidates, gmail_candidates

__all__ = [
    "GoogleAuthError",
    "GoogleClient",
    "GoogleError",
    "calendar_candidates",
    "gmail_candidates",
]
