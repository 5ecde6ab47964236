"""
Chat API Endpoint.

Handles conversational messages for the clinic booking assistant and
exposes the per-session booking progress.
"""

import logging
import time
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from app.core.scheduling.service import get_booking_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])

SESSION_ID_PATTERN = r"^[A-Za-z0-9_\-]+$"


class HistoryTurn(BaseModel):
    """One prior conversation turn."""

    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=4000)


class ChatContext(BaseModel):
    """Facts already known about the conversation."""

    userName: Optional[str] = Field(default=None, max_length=100)
    petName: Optional[str] = Field(default=None, max_length=50)


class ChatRequest(BaseModel):
    """Chat message request."""

    message: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="User's message",
        examples=["I'd like to book a checkup for my dog Buddy"],
    )
    session_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        pattern=SESSION_ID_PATTERN,
        description="Chat session ID for conversation continuity",
        examples=["sess_550e8400e29b41d4"],
    )
    history: list[HistoryTurn] = Field(
        default_factory=list,
        description="Recent conversation turns, oldest first",
    )
    context: Optional[ChatContext] = Field(
        default=None,
        description="Known conversation facts used to pre-fill a booking",
    )


class BookingProgress(BaseModel):
    """Booking progress for a session."""

    is_active: bool
    collected_fields: list[str]
    missing_fields: list[str]
    current_field: Optional[str] = None
    is_confirming: bool
    progress: int = Field(..., ge=0, le=100, description="Percent of required fields collected")


class AppointmentInfo(BaseModel):
    """Created appointment request."""

    reference_id: str
    preferred_date: str
    preferred_time: str
    pet_name: str
    phone_number: str
    status: str


class ChatResponse(BaseModel):
    """Chat response."""

    reply: str = Field(
        ...,
        description="Assistant's response message",
    )
    session_id: str = Field(
        ...,
        description="Session ID for continuing conversation",
    )
    action: Optional[str] = Field(
        default=None,
        description="Booking action taken this turn (collecting, confirming, edit_requested, confirmed, cancelled, restarted)",
    )
    appointment_detected: bool = Field(
        default=False,
        description="True when this message started a booking",
    )
    booking_in_progress: bool = Field(
        default=False,
        description="True while a booking is still being collected or confirmed",
    )
    booking: Optional[BookingProgress] = Field(
        default=None,
        description="Booking progress while a booking is active",
    )
    appointment: Optional[AppointmentInfo] = Field(
        default=None,
        description="Appointment details once the booking is confirmed",
    )
    processing_time_ms: Optional[float] = Field(
        default=None,
        description="Processing time in milliseconds",
    )


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    detail: Optional[str] = None


@router.post(
    "",
    response_model=ChatResponse,
    status_code=status.HTTP_200_OK,
    summary="Send a chat message",
    description="Send a message to the booking assistant and get a response.",
    responses={
        200: {"description": "Successful response"},
        422: {"model": ErrorResponse, "description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def chat(request: ChatRequest) -> ChatResponse:
    """
    Process a chat message.

    - Starts a booking when the message asks for an appointment
    - Continues an active booking (collect, confirm, cancel, restart)
    - Creates the appointment once the user confirms the summary

    The session_id should be preserved across requests to keep the
    booking progress.
    """
    start_time = time.time()

    try:
        service = get_booking_service()
        result = await service.handle_message(
            session_id=request.session_id,
            message=request.message,
            history=[turn.model_dump() for turn in request.history],
            context=request.context.model_dump(exclude_none=True) if request.context else None,
        )
    except Exception as e:
        logger.exception(f"Error processing chat message: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process message",
        )

    return ChatResponse(
        reply=result.reply,
        session_id=result.session_id,
        action=result.action,
        appointment_detected=result.appointment_detected,
        booking_in_progress=result.booking_in_progress,
        booking=BookingProgress(**result.booking) if result.booking else None,
        appointment=AppointmentInfo(**result.appointment) if result.appointment else None,
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@router.get(
    "/session/{session_id}/booking",
    response_model=BookingProgress,
    summary="Get booking progress",
    description="Retrieve the active booking for a conversation session.",
    responses={
        200: {"description": "Booking progress"},
        404: {"model": ErrorResponse, "description": "No active booking"},
    },
)
async def get_booking(session_id: str) -> BookingProgress:
    """Get the active booking's progress."""
    state = await get_booking_service().get_booking(session_id)

    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active booking",
        )

    return BookingProgress(**state.summary())


@router.delete(
    "/session/{session_id}/booking",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard a booking",
    description="Discard the booking in progress for a conversation session.",
    responses={
        204: {"description": "Booking discarded"},
        404: {"model": ErrorResponse, "description": "No active booking"},
    },
)
async def reset_booking(session_id: str) -> None:
    """Discard the session's booking."""
    deleted = await get_booking_service().reset_booking(session_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active booking",
        )
