# Middleware package init
"""
ParcelFlow Backend — Middleware Package
=========================================

Middleware Chain (outermost first, as added in main.create_app):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    Rate limiting rejects abusive clients before any other work; the request
    id is assigned before the access log line is written, so both the log
    and the error envelope carry it.
"""
