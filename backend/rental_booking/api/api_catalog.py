from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud
from ..database import get_db
from ..schemas.catalog import CatalogItemCreate, CatalogItemResponse, CatalogItemUpdate
from .dependencies import Actor, get_current_actor, get_current_admin

router = APIRouter(tags=["catalog"], default_response_class=ORJSONResponse)


@router.post("/", response_model=CatalogItemResponse, status_code=status.HTTP_201_CREATED)
def create_catalog_item(
    *,
    db: Session = Depends(get_db),
    item_in: CatalogItemCreate,
    current_admin: Actor = Depends(get_current_admin),
) -> Any:
    return crud.catalog.create_item(db, item_in)


@router.get("/{item_id}", response_model=CatalogItemResponse)
def read_catalog_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
) -> Any:
    item = crud.catalog.get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Catalog item not found.")
    return item


@router.patch("/{item_id}", response_model=CatalogItemResponse)
def update_catalog_price(
    item_id: int,
    item_in: CatalogItemUpdate,
    db: Session = Depends(get_db),
    current_admin: Actor = Depends(get_current_admin),
) -> Any:
    """Change the current price; bookings already made keep their rate."""
    item = crud.catalog.get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Catalog item not found.")
    return crud.catalog.update_price(db, item, item_in.unit_price)
