# Services package init
"""
Natours Backend — Services Layer
==================================

In-memory resource stores used by the routers. Persistence is outside the
scope of this service; these stores exist so the routers have something to
read and write.

Service Inventory:
    - TourService:   tour catalogue with filtering and sorting
    - ReviewService: reviews per tour, one per user and tour
"""
