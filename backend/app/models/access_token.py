from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.core.database import Base


class PersonalAccessToken(Base):
    """Bearer token issued at login; only the sha256 digest is stored"""
    __tablename__ = "personal_access_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_nim = Column(
        String(9),
        ForeignKey("students.nim", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    token_hash = Column(String(64), unique=True, index=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_used_at = Column(DateTime, nullable=True)

    student = relationship("Student", back_populates="access_tokens")

    def __repr__(self):
        return f"<PersonalAccessToken {self.name}>"
