from __future__ import annotations

from enum import Enum


class DealRole(str, Enum):
    ECONOMIC_BUYER = "Economic Buyer"
    CHAMPION = "Champion"
    INFLUENCER = "Influencer"
    TECHNICAL_BUYER = "Technical Buyer"
    END_USER = "End User"
    BLOCKER = "Blocker"


class Priority(str, Enum):
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"


class RelationshipStrength(str, Enum):
    STRONG = "Strong"
    NEUTRAL = "Neutral"
    WEAK = "Weak"
    AT_RISK = "At Risk"
    UNKNOWN = "Unknown"


class ActivityType(str, Enum):
    MEETING = "Meeting"
    EMAIL = "Email"
    CALL = "Call"
    SLACK = "Slack"


class SyncSource(str, Enum):
    EMAIL = "email"
    CALENDAR = "calendar"


DEFAULT_TEAMS = [
    "Engineering Infrastructure",
    "Finance",
    "Legal/Compliance",
    "Product Team A",
    "Product Team B",
    "Security",
    "Procurement",
]
