"""
Natours Backend — Route Table
===============================

What:  The ordered (prefix, router) pairs mounted by the app factory.
How:   Prefixes are matched in this order; the fallback router is mounted
       after all of them and turns anything left into a 404 failure.

Route Inventory:
    /api/v1/tours     tours.py    list, get, create
    /api/v1/users     users.py    current user
    /api/v1/reviews   reviews.py  list, create
    /*                fallback.py 404 for everything else

Routers are thin: they read the pipeline's RequestContext, call a service
and return a success envelope. They never write error responses.
"""

from typing import Tuple

from fastapi import APIRouter

from natours.routes import reviews, tours, users

ROUTE_TABLE: Tuple[Tuple[str, APIRouter], ...] = (
    ("/api/v1/tours", tours.router),
    ("/api/v1/users", users.router),
    ("/api/v1/reviews", reviews.router),
)
