from sqlalchemy import Column, String, Float, Integer, Date, DateTime
from datetime import datetime
from app.database.connection import Base

class Product(Base):
    __tablename__ = "products"

    product_id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)

    original_price = Column(Float, nullable=False)
    final_price = Column(Float, nullable=False)
    discount_percentage = Column(Integer, nullable=True)

    batch_number = Column(String, nullable=True)
    manufacturing_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=False, index=True)

    quantity_available = Column(Integer, default=0)
    distance_km = Column(Float, nullable=True)  # store distance from the shopper hub

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
