"""Health check response model"""

from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """API health check response"""

    status: str
    service: str
    version: str
    timestamp: datetime
