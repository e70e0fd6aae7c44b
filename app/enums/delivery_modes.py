from enum import Enum

class DeliveryMode(str, Enum):
    delivery = "delivery"
    pickup = "pickup"
