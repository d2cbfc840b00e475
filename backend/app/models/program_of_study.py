from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from app.core.database import Base


class ProgramOfStudy(Base):
    """Academic program; the code is embedded in every NIM (nim[2:6])"""
    __tablename__ = "programs_of_study"

    code = Column(String(4), primary_key=True)
    name = Column(String(100), nullable=False)
    department = Column(String(100), nullable=True)
    degree = Column(String(10), nullable=True)  # D3, D4

    students = relationship("Student", back_populates="program")

    def __repr__(self):
        return f"<ProgramOfStudy {self.code} {self.name}>"
