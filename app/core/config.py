from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # DB
    DATABASE_URL: str = "sqlite:///./marketplace.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Pricing
    CURRENCY: str = "INR"
    DELIVERY_FEE: float = 40.0
    DEFAULT_FRESHNESS_PERCENT: float = 50.0

    # Near-expiry quantity warnings
    NEAR_EXPIRY_DAYS: int = 2
    CART_QUANTITY_WARNING_THRESHOLD: int = 2
    PRODUCT_QUANTITY_WARNING_THRESHOLD: int = 1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
