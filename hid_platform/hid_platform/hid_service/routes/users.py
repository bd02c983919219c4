"""
Profile routes. Every route requires a bearer access token.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..dependencies import Identity, get_current_identity, get_db
from ..models import (
    Allergy,
    ChronicCondition,
    CurrentMedication,
    EmergencyContact,
    HealthId,
    User,
    UserProfile,
)
from ..schemas import MessageResponse, ProfileUpdateRequest

router = APIRouter(prefix="/api/user", tags=["user"])
logger = logging.getLogger(__name__)


def _split_full_name(full_name):
    parts = full_name.split(" ") if full_name else []
    first_name = parts[0] if parts and parts[0] else None
    last_name = " ".join(parts[1:]) or None
    return first_name, last_name


def _coalesce(obj, field: str, value) -> None:
    # Absent values keep what is stored
    if value is not None:
        setattr(obj, field, value)


@router.get("/profile")
def get_profile(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    user = db.get(User, identity.user_id)
    profile = db.get(UserProfile, identity.user_id)
    if not user or not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")
    health_id = db.get(HealthId, identity.user_id)
    contact = (
        db.query(EmergencyContact)
        .filter(EmergencyContact.user_id == identity.user_id)
        .order_by(EmergencyContact.contact_id.desc())
        .first()
    )
    medications = (
        db.query(CurrentMedication)
        .filter(CurrentMedication.user_id == identity.user_id)
        .order_by(CurrentMedication.medication_name)
        .all()
    )

    return {
        "userId": user.user_id,
        "email": user.email,
        "phoneNumber": user.phone_number,
        "healthId": health_id.health_id if health_id else None,
        "aboutMe": {
            "firstName": profile.first_name,
            "lastName": profile.last_name,
            "dateOfBirth": profile.date_of_birth.isoformat() if profile.date_of_birth else None,
            "gender": profile.gender,
            "country": profile.country,
            "state": profile.state,
        },
        "healthInfo": {
            "bloodGroup": profile.blood_group,
            "genotype": profile.genotype,
            "currentMedications": [m.medication_name for m in medications],
        },
        "emergencyContact": contact.to_dict() if contact else None,
        "medicalNotes": profile.medical_notes,
    }


@router.put("/profile", response_model=MessageResponse)
def update_profile(
    payload: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Update profile, health information, emergency contact and medical notes.

    All sections are written in one transaction. A list in healthInfo
    replaces the stored set; the emergency contact replaces the stored one.
    """
    user_id = identity.user_id
    profile = db.get(UserProfile, user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")

    try:
        if payload.about_me:
            about = payload.about_me
            first_name, last_name = _split_full_name(about.full_name)
            _coalesce(profile, "first_name", first_name)
            _coalesce(profile, "last_name", last_name)
            _coalesce(profile, "date_of_birth", about.date_of_birth)
            _coalesce(profile, "gender", about.gender)
            _coalesce(profile, "country", about.country or None)
            _coalesce(profile, "state", about.state or None)

        if payload.health_info:
            info = payload.health_info
            _coalesce(profile, "blood_group", info.blood_group or None)
            _coalesce(profile, "genotype", info.genotype or None)

            if info.allergies is not None:
                db.execute(delete(Allergy).where(Allergy.user_id == user_id))
                for name in dict.fromkeys(info.allergies):
                    db.add(Allergy(user_id=user_id, allergen_name=name))

            if info.chronic_conditions is not None:
                db.execute(delete(ChronicCondition).where(ChronicCondition.user_id == user_id))
                for name in dict.fromkeys(info.chronic_conditions):
                    db.add(ChronicCondition(user_id=user_id, condition_name=name, is_critical=False))

            if info.current_medications is not None:
                db.execute(delete(CurrentMedication).where(CurrentMedication.user_id == user_id))
                for name in info.current_medications:
                    db.add(CurrentMedication(user_id=user_id, medication_name=name))

        if payload.emergency_contact:
            contact = payload.emergency_contact
            db.execute(delete(EmergencyContact).where(EmergencyContact.user_id == user_id))
            db.add(EmergencyContact(
                user_id=user_id,
                name=contact.full_name,
                relationship_to_user=contact.relationship,
                phone_number=contact.phone_number,
                address=contact.address,
                is_next_of_kin=True,
            ))

        if payload.medical_notes:
            profile.medical_notes = payload.medical_notes

        db.add(profile)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Profile update error: user_id=%s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile due to a server error."
        ) from e

    logger.info("Profile updated: user_id=%s", user_id)
    return MessageResponse(message="User profile updated successfully.")
