# Middleware package init
"""
Twinshot Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID shared by every log line of the request
    2. Logging: method, path, status and duration, tagged with the request ID

    The order is reversed for responses, so the request ID header is set
    after the access log line has been written.
"""
