from enum import Enum

class UrgencyTier(str, Enum):
    urgent = "URGENT"
    soon = "SOON"
    safe = "SAFE"
