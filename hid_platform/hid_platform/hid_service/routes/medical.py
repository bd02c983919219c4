"""
Medical sub-record routes (allergies, chronic conditions) for the caller's
own account. Every route requires a bearer access token.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..dependencies import Identity, get_current_identity, get_db
from ..models import Allergy, ChronicCondition
from ..schemas import AllergyCreate, ConditionCreate

router = APIRouter(prefix="/api/medical", tags=["medical"])
logger = logging.getLogger(__name__)


# ---------------- Allergies ----------------

@router.post("/allergies", status_code=status.HTTP_201_CREATED)
def create_allergy(payload: AllergyCreate, identity: Identity = Depends(get_current_identity),
                   db: Session = Depends(get_db)):
    allergy = Allergy(
        user_id=identity.user_id,
        allergen_name=payload.allergen_name,
        category=payload.category,
        reaction=payload.reaction,
        severity=payload.severity,
    )
    try:
        db.add(allergy)
        db.commit()
        db.refresh(allergy)
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This allergy already exists for your profile."
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Create allergy error: user_id=%s", identity.user_id)
        raise HTTPException(status_code=500, detail="Server error creating allergy.") from e

    return {
        "message": "Allergy created successfully.",
        "allergy": {"allergyId": allergy.allergy_id, "allergenName": allergy.allergen_name},
    }


@router.get("/allergies")
def list_allergies(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    allergies = (
        db.query(Allergy)
        .filter(Allergy.user_id == identity.user_id)
        .order_by(Allergy.category, Allergy.allergen_name)
        .all()
    )
    return [allergy.to_dict() for allergy in allergies]


@router.delete("/allergies/{allergy_id}")
def delete_allergy(allergy_id: int, identity: Identity = Depends(get_current_identity),
                   db: Session = Depends(get_db)):
    deleted = (
        db.query(Allergy)
        .filter(Allergy.user_id == identity.user_id, Allergy.allergy_id == allergy_id)
        .delete(synchronize_session=False)
    )
    if deleted == 0:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Allergy not found or does not belong to user."
        )
    db.commit()
    return {"message": "Allergy deleted successfully."}


# ---------------- Chronic conditions ----------------

@router.post("/conditions", status_code=status.HTTP_201_CREATED)
def create_condition(payload: ConditionCreate, identity: Identity = Depends(get_current_identity),
                     db: Session = Depends(get_db)):
    condition = ChronicCondition(
        user_id=identity.user_id,
        condition_name=payload.condition_name,
        diagnosis_date=payload.diagnosis_date,
        status=payload.status or "Active",
        is_critical=payload.is_critical or False,
    )
    try:
        db.add(condition)
        db.commit()
        db.refresh(condition)
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This condition already exists for your profile."
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Create condition error: user_id=%s", identity.user_id)
        raise HTTPException(status_code=500, detail="Server error creating condition.") from e

    return {
        "message": "Condition created successfully.",
        "condition": {"conditionId": condition.condition_id, "conditionName": condition.condition_name},
    }


@router.get("/conditions")
def list_conditions(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    conditions = (
        db.query(ChronicCondition)
        .filter(ChronicCondition.user_id == identity.user_id)
        .order_by(ChronicCondition.is_critical.desc(), ChronicCondition.condition_name)
        .all()
    )
    return [condition.to_dict() for condition in conditions]
