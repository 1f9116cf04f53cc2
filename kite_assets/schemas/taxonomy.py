"""
Taxonomy Schemas

Departments, categories and locations share one shape.
"""
from pydantic import BaseModel, Field
from datetime import datetime


class TaxonomyItemCreate(BaseModel):
    name: str = Field(..., max_length=255)


class TaxonomyItemUpdate(BaseModel):
    name: str = Field(..., max_length=255)


class TaxonomyItemResponse(BaseModel):
    id: str
    organization_id: str
    name: str
    created_at: datetime

    class Config:
        from_attributes = True
