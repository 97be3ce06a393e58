# Middleware package init
"""
Natours Backend — Request Pipeline
====================================

What:  The cross-cutting stages every request passes through before a
       resource router sees it.

Stage Order (order matters!):
    Request → [Security Headers] → [Dev Logging] → [Rate Limit] → [JSON Body]
            → [Sanitize] → [Parameter Pollution] → [Static Files]
            → [Request Time] → Router

    1. Security headers first: their response hook runs last, so every
       response carries them, including errors and static files
    2. Rate limit before the body is read: rejected clients cost nothing
    3. Sanitize after the body decoder, so parsed body fields are covered
    4. Static files after input handling, before any router

Any stage may fail; later stages are then skipped and the global error
handler writes the response.
"""
