"""
Inventory schemas for materials and equipment.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID

from ..database.models import InventoryType


class InventoryCreateRequest(BaseModel):
    """Inventory item creation request schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Item name")
    unit: str = Field(..., min_length=1, max_length=20, description="Unit of measure (ea, bag, ft, ...)")
    type: InventoryType = Field(InventoryType.MATERIAL, description="material or equipment")
    stock: int = Field(0, ge=0, description="Units on hand")
    brand: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    unit_price: Decimal = Field(Decimal("0"), ge=0)


class InventoryUpdateRequest(BaseModel):
    """Inventory item update request schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    type: Optional[InventoryType] = None
    stock: Optional[int] = Field(None, ge=0)
    brand: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    unit_price: Optional[Decimal] = Field(None, ge=0)


class InventoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: str
    name: str
    type: InventoryType
    stock: int
    unit: str
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    unit_price: float
    created_at: datetime
    updated_at: Optional[datetime] = None


class InventoryListResponse(BaseModel):
    items: List[InventoryResponse]
    total: int
