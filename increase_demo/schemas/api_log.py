"""
Pydantic schemas for the API request log.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, computed_field

from increase_demo.clients.increase import dashboard_url_for


class ApiRequestResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    method: str
    path: str
    status_code: int
    resource_type: str
    resource_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def succeeded(self) -> bool:
        return 200 <= self.status_code < 300

    @computed_field
    @property
    def dashboard_url(self) -> str | None:
        return dashboard_url_for(self.resource_type, self.resource_id)


class VendorCallResponse(BaseModel):
    """A call made by a setup that failed before it had a session."""

    method: str
    path: str
    status_code: int
    resource_type: str
    resource_id: str | None
    timestamp: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def dashboard_url(self) -> str | None:
        return dashboard_url_for(self.resource_type, self.resource_id)
