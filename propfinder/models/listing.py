"""Listing data models"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class ListingBase(BaseModel):
    """Base listing fields"""
    title: str
    description: str
    property_type: str
    bedrooms: int = Field(ge=0)
    bathrooms: int = Field(ge=0)
    price: float = Field(ge=0)
    location: str
    area: float = Field(ge=0)
    features: List[str] = Field(default_factory=list)
    company_name: str
    agent_name: str
    agent_phone: str


class ListingCreate(ListingBase):
    """Model for creating a new listing"""

    @staticmethod
    def split_features(raw: Optional[str]) -> List[str]:
        """Split a comma-separated feature string, dropping blanks."""
        if not raw:
            return []
        return [f.strip() for f in raw.split(",") if f.strip()]


class Listing(ListingBase):
    """Complete listing model"""
    id: str
    images: List[str] = Field(default_factory=list)
    created_at: datetime

    class Config:
        from_attributes = True
