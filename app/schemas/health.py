"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether the account store answered a trivial query",
    )
    providers: dict[str, bool] = Field(
        default_factory=dict,
        description="OAuth provider name -> whether client credentials are configured",
    )
    email_delivery: Literal["smtp", "log", "unavailable"] = Field(
        description="'smtp' when SMTP is configured, 'log' when codes are only logged (dev), 'unavailable' otherwise",
    )
