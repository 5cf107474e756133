# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from database import Base

# Audit trail of cart and checkout events (who did what, and how it ended)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    session_token = Column(String(64), nullable=True)
    action = Column(String(50), index=True)  # e.g. ORDER_CREATE
    resource = Column(String(50), index=True)  # cart / orders
    status = Column(String(20), index=True)  # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)

    # Free-form context (ids, totals, failure reason)
    meta = Column(JSON, nullable=True)
