from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func, true
from splitledger.db.session import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    mobile_no = Column(String(10), nullable=False)
    password_hash = Column(String, nullable=False)

    refresh_token = Column(String, nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
