"""
Shared utilities for the hosting edge auth gate.

This package aggregates building blocks that do not depend on the gate
itself:

- config: settings via pydantic-settings
- logging: structured logging with request correlation
- errors: error taxonomy and error responses
- metrics: Prometheus metrics helpers
- once: single-initialization async cache cells
- parameter_store: AWS SSM access
- base_service: FastAPI scaffold for locally hosted services
- test_helpers: signing keys, tokens and events for tests

Do not import from service_* packages into shared/.
"""
