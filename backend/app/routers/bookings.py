"""
Router pour les bookings récurrents : attribution d'élèves aux créneaux d'un professeur.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.booking import AssignmentRequest, BookingResponse, BookingView, UnassignResult
from app.services import booking_service

router = APIRouter(prefix="/api/v1", tags=["Bookings"])


@router.get(
    "/teachers/{teacher_id}/bookings",
    response_model=List[BookingView],
    summary="Bookings d'un professeur",
)
def list_bookings(teacher_id: uuid.UUID, tenant_id: Optional[str] = None, db: Session = Depends(get_db)):
    return booking_service.list_bookings(db, teacher_id, tenant_id)


@router.post(
    "/teachers/{teacher_id}/bookings",
    response_model=List[BookingResponse],
    status_code=201,
    summary="Attribuer un élève",
)
def assign_student(teacher_id: uuid.UUID, data: AssignmentRequest, db: Session = Depends(get_db)):
    """
    Attribue un élève sur un ou plusieurs jours à la même heure (5 jours maximum).
    Refusé (409) si un des jours est déjà occupé ou non déclaré disponible.
    """
    try:
        return booking_service.assign_student(db, teacher_id, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/bookings/{booking_id}", status_code=204, summary="Supprimer un booking")
def delete_booking(booking_id: uuid.UUID, db: Session = Depends(get_db)):
    if not booking_service.delete_booking(db, booking_id):
        raise HTTPException(status_code=404, detail="Booking introuvable.")


@router.delete(
    "/teachers/{teacher_id}/students/{student_id}/bookings",
    response_model=UnassignResult,
    summary="Désattribuer un élève",
)
def unassign_student(teacher_id: uuid.UUID, student_id: uuid.UUID, db: Session = Depends(get_db)):
    """Supprime tous les bookings de l'élève chez ce professeur."""
    return booking_service.unassign_student(db, teacher_id, student_id)
