from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class Admin(Base):
    """Staff account for the /admin pages"""
    __tablename__ = "admins"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    username = Column(String(100), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Admin {self.username}>"
