from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Numeric
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid

from ..core.database import Base

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), ForeignKey("users.id"), unique=True, nullable=False)

    # Professional information
    specialization = Column(String(100), nullable=False)
    qualification = Column(Text, nullable=False)
    experience = Column(Integer, nullable=True)  # Years
    department_id = Column(String(36), ForeignKey("departments.id"), nullable=True)
    license_number = Column(String(50), nullable=True, unique=True)
    consultation_fee = Column(Numeric(10, 2), nullable=True)
    bio = Column(Text, nullable=True)

    # Daily working window, "HH:MM"
    available_from = Column(String(5), nullable=True)
    available_to = Column(String(5), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor")
    department = relationship("Department", back_populates="doctors")
    appointments = relationship("Appointment", back_populates="doctor")

    @property
    def has_working_window(self) -> bool:
        return bool(self.available_from and self.available_to)

    def __repr__(self):
        return f"<Doctor(id={self.id}, user_id='{self.user_id}', specialization='{self.specialization}')>"
