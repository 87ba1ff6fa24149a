"""
API Schemas.

Request and response bodies of the HTTP API. Domain objects (runs, platform
configs, execution results) are returned as-is; only inputs get dedicated
models here.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from automation_engine.schemas.base import BaseSchema


class ExecutionCreate(BaseSchema):
    automation_id: str = Field(..., description="The automation to execute")
    user_id: str = Field(..., description="The user the run executes for (scopes credentials)")
    trigger_data: Optional[Dict[str, Any]] = Field(default=None, description="Values overlaid on blueprint variables")


class CredentialCheckRequest(BaseSchema):
    credentials: Dict[str, Any] = Field(..., description="Credential bundle to test, e.g. {'access_token': '...'}")


class CancelResponse(BaseSchema):
    run_id: str
    cancelled: bool
