# backend/models/address.py
from sqlalchemy import Column, Integer, String, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
from models.order import DeliveryOption

# Delivery address (post office / parcel locker) saved by a user
class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    city = Column(String, nullable=False)
    post_office_address = Column(String, nullable=False)
    delivery_option = Column(Enum(DeliveryOption), nullable=False)

    user = relationship("User", back_populates="addresses")
