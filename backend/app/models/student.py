from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.core.database import Base


class Student(Base):
    """Student account, keyed by NIM"""
    __tablename__ = "students"

    nim = Column(String(9), primary_key=True)
    name = Column(String(50), nullable=False)
    # Admin-created records may have no email or password yet
    email = Column(String(50), unique=True, index=True, nullable=True)
    hashed_password = Column(String(255), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    email_verified_at = Column(DateTime, nullable=True)

    program_code = Column(
        String(4),
        ForeignKey("programs_of_study.code"),
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    program = relationship("ProgramOfStudy", back_populates="students")
    access_tokens = relationship(
        "PersonalAccessToken",
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def has_verified_email(self) -> bool:
        return self.email_verified_at is not None

    def __repr__(self):
        return f"<Student {self.nim}>"
