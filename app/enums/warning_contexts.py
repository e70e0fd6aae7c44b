from enum import Enum

class WarningContext(str, Enum):
    # cart page and product-detail page warn at different quantities
    cart = "cart"
    product_detail = "product_detail"
