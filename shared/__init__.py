"""
Shared utilities for the Guestbook backend.

This package aggregates common building blocks consumed by services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application shell
- test_helpers: In-memory fakes for the store and cache

Do not import from service_* packages into shared/, except in test_helpers.
"""
