# Middleware package init
"""
Stockroom — Middleware Package
================================

What:  Cross-cutting concerns applied to every request of every service.

Middleware Chain:
    Request → [Request ID] → [Logging] → Route Handler

    Request ID runs first so the access log line carries the correlation ID;
    the order is reversed for responses, which is where the logger measures
    status and duration.
"""
