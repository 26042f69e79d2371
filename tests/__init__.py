"""
Test suite for the AgentDesk orchestration core.

Demonstrates testing patterns for Pydantic-based architectures:
- Domain logic tests with scripted provider clients (no network)
- Failure boundaries tested as values, not exceptions
- Integration tests through the real FastAPI app with dependency overrides
"""
