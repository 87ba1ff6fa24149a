"""
Automation Service Dependency.

Provides a singleton instance of the AutomationService for API endpoints.
"""

from typing import Annotated, Optional

from fastapi import Depends

from automation_engine.factory import build_automation_service
from automation_engine.server.core.config import settings
from automation_engine.server.core.database import async_session_maker
from automation_engine.service import AutomationService

# Global singleton
_service: Optional[AutomationService] = None


def get_automation_service() -> AutomationService:
    global _service
    if _service is None:
        _service = build_automation_service(session_factory=async_session_maker, settings=settings)
    return _service


AutomationServiceDep = Annotated[AutomationService, Depends(get_automation_service)]
