"""
Scheduling Module

The booking state machine, per-turn engine, response templates,
appointment creation and the chat-facing booking service.

Usage:
    from app.core.scheduling import process_message

    # Process a chat message
    reply = await process_message(
        session_id="sess_abc123",
        message="I'd like to book a checkup for my dog",
    )
    print(reply.reply)  # Bot's response
    print(reply.booking)  # Booking progress, while a booking is active
"""

# Response Generator
from app.core.scheduling.response import (
    ResponseGenerator,
    get_response_generator,
    format_date_display,
    format_time_display,
)

# Booking Flow
from app.core.scheduling.flow import (
    BookingFlow,
    BookingAction,
    FlowResult,
    get_booking_flow,
)

# Booking Engine
from app.core.scheduling.engine import (
    BookingEngine,
    get_booking_engine,
)

# Appointments
from app.core.scheduling.appointments import (
    AppointmentRecord,
    AppointmentRepository,
    AppointmentCreationError,
    InMemoryAppointmentRepository,
    SqlAppointmentRepository,
    generate_reference_id,
    get_appointment_repository,
)

# Booking Service (main entry point)
from app.core.scheduling.service import (
    BookingService,
    ChatReply,
    get_booking_service,
    process_message,
)

__all__ = [
    # Response Generator
    "ResponseGenerator",
    "get_response_generator",
    "format_date_display",
    "format_time_display",
    # Booking Flow
    "BookingFlow",
    "BookingAction",
    "FlowResult",
    "get_booking_flow",
    # Booking Engine
    "BookingEngine",
    "get_booking_engine",
    # Appointments
    "AppointmentRecord",
    "AppointmentRepository",
    "AppointmentCreationError",
    "InMemoryAppointmentRepository",
    "SqlAppointmentRepository",
    "generate_reference_id",
    "get_appointment_repository",
    # Booking Service
    "BookingService",
    "ChatReply",
    "get_booking_service",
    "process_message",
]
