from dealmap.domain.models import Activity, Stakeholder, Workspace
from dealmap.domain.rules import UpstreamAuthError, ValidationError

__all__ = [
    "Activity",
    "Stakeholder",
    "UpstreamAuthError",
    "ValidationError",
    "Workspace",
]
