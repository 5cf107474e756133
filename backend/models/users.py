# backend/models/users.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from database import Base

# Represents a customer or staff account; authentication itself is handled upstream
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    role = Column(String, nullable=False, default="customer")
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)

    cart = relationship("Cart", back_populates="user", uselist=False)
    addresses = relationship("Address", back_populates="user")
