from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, DateTime, Date, Text, Enum, Index, JSON,
    UniqueConstraint,
)
from datetime import datetime, timezone
from .db import Base
from sqlalchemy.orm import relationship
import uuid


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite hands back for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"
    user_id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone_number = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    profile = relationship("UserProfile", back_populates="user", uselist=False,
                           cascade="all, delete-orphan")
    health_identifier = relationship("HealthId", back_populates="user", uselist=False,
                                     cascade="all, delete-orphan")
    allergies = relationship("Allergy", cascade="all, delete-orphan")
    chronic_conditions = relationship("ChronicCondition", cascade="all, delete-orphan")
    current_medications = relationship("CurrentMedication", cascade="all, delete-orphan")
    emergency_contacts = relationship("EmergencyContact", cascade="all, delete-orphan")


class UserProfile(Base):
    __tablename__ = "user_profiles"
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(16), nullable=True)
    country = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    blood_group = Column(String(8), nullable=True)
    genotype = Column(String(8), nullable=True)
    medical_notes = Column(Text, nullable=True)

    user = relationship("User", back_populates="profile")


class HealthId(Base):
    __tablename__ = "health_ids"
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    health_id = Column(String(64), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="health_identifier")


class OtpVerification(Base):
    __tablename__ = "otp_verification"
    id = Column(Integer, primary_key=True, index=True)
    # Keyed by email rather than user id
    email = Column(String(255), index=True, nullable=False)
    otp_code = Column(String(6), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)


class Allergy(Base):
    __tablename__ = "allergies"
    allergy_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    allergen_name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    reaction = Column(String(255), nullable=True)
    severity = Column(String(50), nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "allergen_name", name="uq_allergies_user_allergen"),
    )

    def to_dict(self) -> dict:
        return {
            "allergyId": self.allergy_id,
            "allergenName": self.allergen_name,
            "category": self.category,
            "reaction": self.reaction,
            "severity": self.severity,
            "isVerified": self.is_verified,
        }


class ChronicCondition(Base):
    __tablename__ = "chronic_conditions"
    condition_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    condition_name = Column(String(255), nullable=False)
    diagnosis_date = Column(Date, nullable=True)
    status = Column(String(50), default="Active", nullable=False)
    is_critical = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "condition_name", name="uq_conditions_user_condition"),
    )

    def to_dict(self) -> dict:
        return {
            "conditionId": self.condition_id,
            "conditionName": self.condition_name,
            "diagnosisDate": self.diagnosis_date.isoformat() if self.diagnosis_date else None,
            "status": self.status,
            "isCritical": self.is_critical,
        }


class CurrentMedication(Base):
    __tablename__ = "current_medications"
    medication_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    medication_name = Column(String(255), nullable=False)


class EmergencyContact(Base):
    __tablename__ = "emergency_contacts"
    contact_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    relationship_to_user = Column("relationship", String(100), nullable=True)
    phone_number = Column(String(32), nullable=True)
    address = Column(String(255), nullable=True)
    is_next_of_kin = Column(Boolean, default=False, nullable=False)

    def to_dict(self) -> dict:
        return {
            "fullName": self.name,
            "relationship": self.relationship_to_user,
            "phoneNumber": self.phone_number,
            "address": self.address,
            "isNextOfKin": self.is_next_of_kin,
        }


AUTH_EVENT_TYPES = (
    "signup",
    "login_success",
    "login_failure",
    "otp_sent",
    "otp_verified",
    "password_reset",
    "token_refresh",
)


class AuthEvent(Base):
    __tablename__ = "auth_events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    email = Column(String(255), nullable=False)
    event_type = Column(Enum(*AUTH_EVENT_TYPES, name="auth_event_type"), nullable=False)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False)
    event_metadata = Column(JSON, nullable=True)

    __table_args__ = (
        Index('ix_auth_events_user_id', 'user_id'),
        Index('ix_auth_events_timestamp', 'timestamp'),
        Index('ix_auth_events_event_type', 'event_type'),
        Index('ix_auth_events_user_id_timestamp', 'user_id', 'timestamp'),
    )

    def to_dict(self) -> dict:
        """
        Serialize AuthEvent to dictionary for API responses.

        Returns:
            Dictionary with all event fields, UUIDs as strings,
            datetimes in ISO 8601 format
        """
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "email": self.email,
            "event_type": self.event_type,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "metadata": self.event_metadata or {}
        }
