"""
Test Suite for the Ticket Auth Service

Unit tests for the auth flow, stores and security helpers, plus HTTP tests
that drive the FastAPI app through httpx.
"""
