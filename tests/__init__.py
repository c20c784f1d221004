"""CareVoice Test Suite

Test organization:
- unit/voice/: Interpreter, capture adapter, staging store, feedback,
  session, preferences and navigation tests
- integration/: FastAPI voice API tests

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/voice/test_intent_parser.py

    # Unit tests only
    pytest -m "not integration"
"""
