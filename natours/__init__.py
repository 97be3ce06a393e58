"""
Natours Backend — Application Package
=======================================

Layout:

    ┌─────────────────────────────────────┐
    │   middleware/  request pipeline     │  ← ordered stages + driver
    ├─────────────────────────────────────┤
    │   error_handler.py                  │  ← the only error response writer
    ├─────────────────────────────────────┤
    │   routes/      resource routers     │  ← thin, read RequestContext
    ├─────────────────────────────────────┤
    │   services/    in-memory resources  │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
