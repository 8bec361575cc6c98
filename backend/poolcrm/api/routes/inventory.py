"""
Inventory API routes for materials and equipment.
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import InventoryItem, InventoryType
from ...schemas.inventory import (
    InventoryCreateRequest, InventoryUpdateRequest, InventoryResponse, InventoryListResponse
)
from ...auth.dependencies import get_company_filter, CompanyFilter
from ..updates import apply_update

router = APIRouter(prefix="/inventory", tags=["Inventory"])


# PUBLIC_INTERFACE
@router.get("", response_model=InventoryListResponse,
            summary="List inventory",
            description="List inventory items, newest first, optionally by type or name search.")
async def list_inventory(
    item_type: Optional[InventoryType] = Query(None, alias="type", description="material or equipment"),
    q: Optional[str] = Query(None, description="Search name, brand or model"),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    query = company_filter.filter_query(db.query(InventoryItem), InventoryItem)
    if item_type is not None:
        query = query.filter(InventoryItem.type == item_type)
    if q:
        pattern = f"%{q}%"
        query = query.filter(
            (InventoryItem.name.ilike(pattern)) |
            (InventoryItem.brand.ilike(pattern)) |
            (InventoryItem.model.ilike(pattern))
        )

    items = query.order_by(InventoryItem.created_at.desc()).all()
    return InventoryListResponse(
        items=[InventoryResponse.model_validate(i) for i in items],
        total=len(items)
    )


# PUBLIC_INTERFACE
@router.get("/{item_id}", response_model=InventoryResponse, summary="Get inventory item")
async def get_inventory_item(
    item_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    return InventoryResponse.model_validate(company_filter.get(db, InventoryItem, item_id, "Inventory item not found"))


# PUBLIC_INTERFACE
@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED,
             summary="Create inventory item",
             description="Add an inventory item. Name and unit are required.")
async def create_inventory_item(
    request: InventoryCreateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    item = InventoryItem(company_id=company_filter.company_id, **request.model_dump(exclude_none=True))
    db.add(item)
    db.commit()
    db.refresh(item)
    return InventoryResponse.model_validate(item)


# PUBLIC_INTERFACE
@router.put("/{item_id}", response_model=InventoryResponse, summary="Update inventory item")
async def update_inventory_item(
    item_id: UUID,
    request: InventoryUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    item = company_filter.get(db, InventoryItem, item_id, "Inventory item not found")
    apply_update(item, request.model_dump(exclude_unset=True),
                 required=("name", "unit", "type", "stock", "unit_price"))
    db.commit()
    db.refresh(item)
    return InventoryResponse.model_validate(item)


# PUBLIC_INTERFACE
@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete inventory item",
               description="Delete an item together with its project material entries.")
async def delete_inventory_item(
    item_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    item = company_filter.get(db, InventoryItem, item_id, "Inventory item not found")
    db.delete(item)
    db.commit()
