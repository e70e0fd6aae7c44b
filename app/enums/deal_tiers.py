from enum import Enum

class DealTier(str, Enum):
    hot = "HOT"
    good = "GOOD"
    fair = "FAIR"
