"""
LMS Backend — Health Check Schema
==================================
"""

from typing import Dict

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Service and dependency status returned by GET /health.

    Status levels:
        healthy:   database reachable and every rate-limit sweeper running
        degraded:  database reachable, some sweeper stopped (memory can grow)
        unhealthy: database unreachable (HTTP 503)
    """

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    database: str = Field(description="Database connectivity: connected, disconnected")
    rate_limiters: Dict[str, bool] = Field(
        description="Preset name → whether its expiry sweeper is running"
    )
    uptime_seconds: float = Field(description="Seconds since service started")
