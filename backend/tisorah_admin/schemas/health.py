"""Health check and dashboard summary schemas."""

from typing import Dict

from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    """Health check response schema."""

    status: str
    database: str
    services: Dict[str, str] = {}


class DashboardStats(BaseModel):
    """Counters shown on the dashboard landing page."""

    total_products: int = 0
    total_categories: int = 0
    total_quotes: int = 0
    pending_quotes: int = 0
