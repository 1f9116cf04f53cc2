"""
Organization Schemas
"""
from pydantic import BaseModel
from datetime import datetime


class OrganizationResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    class Config:
        from_attributes = True
