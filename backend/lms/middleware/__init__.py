# Middleware package init
"""
LMS Backend — Middleware Package
=================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Rate Limit] → [CORS/GZip] → Route Handler

    1. Request ID first: rejections and access logs already carry the ID
    2. Logging: records every response, including rate-limit rejections
    3. Rate Limit: rejects over-limit clients before any route work
"""
