from enum import Enum

class SortKey(str, Enum):
    newest = "newest"
    price_asc = "price-asc"
    price_desc = "price-desc"
    discount = "discount"
    expiry_urgent = "expiry-urgent"


class ExpiryWindow(str, Enum):
    one_month = "30days"
    three_months = "90days"
    six_months = "180days"

    @property
    def min_days(self) -> int:
        return int(self.value.replace("days", ""))
