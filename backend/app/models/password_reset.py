from sqlalchemy import Column, String, DateTime, Integer
from datetime import datetime

from app.core.database import Base


class PasswordReset(Base):
    """One-time code issued by forgot-password"""
    __tablename__ = "password_resets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(50), index=True, nullable=False)
    otp = Column(String(4), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    verified_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<PasswordReset {self.email}>"
