"""
Central API router that aggregates all route modules of the main service.
"""

from fastapi import APIRouter

from eventhub.api.routes import admin_events, private_events, private_requests, public_events, ratings

api_router = APIRouter()
api_router.include_router(private_events.router)
api_router.include_router(private_requests.router)
api_router.include_router(ratings.router)
api_router.include_router(admin_events.router)
api_router.include_router(public_events.router)
