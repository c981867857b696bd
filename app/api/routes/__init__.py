"""API routes."""

from fastapi import APIRouter

from app.api.routes import admin_leads, checkout_callbacks, checkouts, clients, leads

api_router = APIRouter()

# Public routes (called by the browser and by Asaas)
api_router.include_router(checkout_callbacks.router, prefix="/checkout", tags=["checkout-callbacks"])

# Operator routes (admin key when configured)
api_router.include_router(checkouts.router, prefix="/checkout", tags=["checkout"])
api_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(admin_leads.router, prefix="/admin/leads", tags=["admin"])
