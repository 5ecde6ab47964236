"""
Test suite for the PawCare booking assistant.

Running Tests:
    # Install test dependencies
    pip install -e ".[test]"

    # Run all unit tests
    pytest tests/unit -v

    # Run one module
    pytest tests/unit/test_conversation_flow.py -v

Unit tests never touch Redis, PostgreSQL or the Anthropic API: session
storage uses InMemorySessionStore (or a mocked Redis client), appointments
use InMemoryAppointmentRepository and AI extraction is either disabled or
driven by a mocked Claude client.
"""
