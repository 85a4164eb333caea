# backend/routes/inventory.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, UploadFile, File, Form
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from models.inventory import InventoryItem
from models.users import User
from schemas import inventory as schemas
from utils.audit import write_log, client_ip
from utils.inventory_view import filter_and_sort
from utils.storage import BlobStorage, get_storage
from utils.tokenJWT import get_current_user
from utils.validation import parse_item_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


# ---- HELPERS ----
def _get_owned_record(db: Session, item_id: str, user: User) -> InventoryItem:
    """Missing and foreign records look the same to the caller."""
    item = db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
    if item is None or item.owner_id != user.id:
        raise HTTPException(status_code=404, detail="Item not found")
    return item

def _has_upload(file: Optional[UploadFile]) -> bool:
    # Browsers send an empty part with no filename when nothing was picked
    return file is not None and bool(file.filename)


# =========================
# LIST
# =========================
@router.get("", response_model=schemas.InventoryList)
def list_inventory(
    search: Optional[str] = Query(None, description="Case-insensitive name filter"),
    sort_by: str = Query("name", pattern="^(name|quantity|price)$"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    records = db.query(InventoryItem).filter(InventoryItem.owner_id == current_user.id).all()
    items = filter_and_sort(records, search=search, sort_by=sort_by, order=order)
    return {"items": items, "total": len(items), "search": search, "sort_by": sort_by, "order": order}


# =========================
# DETAIL
# =========================
@router.get("/{item_id}", response_model=schemas.InventoryItemOut)
def get_inventory_item(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_owned_record(db, item_id, current_user)


# =========================
# CREATE
# =========================
@router.post("", response_model=schemas.InventoryItemResult)
def add_inventory_item(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    quantity: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
):
    name, quantity_int, price_float = parse_item_form(name, quantity, price)

    # Upload first so the record is written with its final photo reference
    photo_url = storage.save(file) if _has_upload(file) else ""

    item = InventoryItem(
        name=name, quantity=quantity_int, price=price_float,
        photo=photo_url, owner_id=current_user.id,
    )
    db.add(item)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error adding inventory item for %s", current_user.id)
        if photo_url:
            storage.delete(photo_url)
        write_log(db, user_id=current_user.id, action="ITEM_CREATE", resource="inventory",
                  status="FAIL", ip=client_ip(request), meta={"name": name})
        raise HTTPException(status_code=500, detail="Failed to add item")
    db.refresh(item)

    logger.info("Inventory item added: %s", item.id)
    write_log(db, user_id=current_user.id, action="ITEM_CREATE", resource="inventory",
              status="SUCCESS", ip=client_ip(request), meta={"id": item.id, "name": item.name})

    return {"message": "Item Added", "item": item}


# =========================
# UPDATE (full overwrite)
# =========================
@router.put("/{item_id}", response_model=schemas.InventoryItemResult)
def update_inventory_item(
    item_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    quantity: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
):
    name, quantity_int, price_float = parse_item_form(name, quantity, price)
    item = _get_owned_record(db, item_id, current_user)

    old_photo = item.photo or ""
    new_photo = storage.save(file) if _has_upload(file) else None

    item.name = name
    item.quantity = quantity_int
    item.price = price_float
    if new_photo is not None:
        item.photo = new_photo

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating inventory item %s", item_id)
        if new_photo:
            storage.delete(new_photo)
        write_log(db, user_id=current_user.id, action="ITEM_UPDATE", resource="inventory",
                  status="FAIL", ip=client_ip(request), meta={"id": item_id})
        raise HTTPException(status_code=500, detail="Failed to update item")
    db.refresh(item)

    # The old photo goes only once the record points at the new one
    if new_photo is not None and old_photo:
        try:
            storage.delete(old_photo)
        except OSError:
            logger.warning("Could not remove replaced photo %s", old_photo, exc_info=True)

    logger.info("Inventory item updated successfully: %s", item.id)
    write_log(db, user_id=current_user.id, action="ITEM_UPDATE", resource="inventory",
              status="SUCCESS", ip=client_ip(request),
              meta={"id": item.id, "photo_replaced": new_photo is not None})

    return {"message": "Item updated successfully", "item": item}


# =========================
# DELETE
# =========================
@router.delete("/{item_id}")
def delete_inventory_item(
    item_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    item = _get_owned_record(db, item_id, current_user)
    photo = item.photo or ""

    # Photo first, kept in the trash until the row is gone
    staged = None
    try:
        if photo and storage.exists(photo):
            staged = storage.stage_delete(photo)
        elif photo:
            logger.warning("Photo %s of item %s is already gone", photo, item_id)
    except OSError:
        logger.exception("Error removing photo %s of item %s", photo, item_id)
        raise HTTPException(status_code=500, detail="Failed to delete item")

    db.delete(item)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        storage.restore(staged, photo)
        logger.exception("Error deleting inventory item %s", item_id)
        write_log(db, user_id=current_user.id, action="ITEM_DELETE", resource="inventory",
                  status="FAIL", ip=client_ip(request), meta={"id": item_id})
        raise HTTPException(status_code=500, detail="Failed to delete item")

    storage.purge(staged)
    logger.info("Inventory item deleted successfully: %s", item_id)
    write_log(db, user_id=current_user.id, action="ITEM_DELETE", resource="inventory",
              status="SUCCESS", ip=client_ip(request), meta={"id": item_id, "photo": photo})
    return {"detail": "Item deleted"}
