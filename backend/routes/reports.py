# routes/reports.py
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from database import get_db
from models.inventory import InventoryItem
from models.users import User
from schemas.reports import ReportSummary
from utils.audit import write_log, client_ip
from utils.inventory_view import totals
from utils.pdf import generate_inventory_report_pdf, get_report_path
from utils.tokenJWT import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


def _owned_items(db: Session, user: User):
    return (db.query(InventoryItem)
            .filter(InventoryItem.owner_id == user.id)
            .order_by(InventoryItem.created_at.asc(), InventoryItem.name.asc())
            .all())


# -----------------------------
# 1) On-screen summary
# -----------------------------
@router.get("/summary", response_model=ReportSummary)
def report_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items = _owned_items(db, current_user)
    total_items, total_price = totals(items)
    return {"items": items, "total_items": total_items, "total_price": total_price}


# -----------------------------
# 2) PDF download
# -----------------------------
@router.post("/pdf")
def report_pdf(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items = _owned_items(db, current_user)
    now = datetime.now()
    out_path = get_report_path(now)
    username = current_user.username or "Unknown User"

    try:
        generate_inventory_report_pdf(items, username, out_path, generated_at=now)
    except OSError as e:
        logger.exception("Error saving PDF report to %s", out_path)
        write_log(db, user_id=current_user.id, action="REPORT_PDF", resource="reports",
                  status="FAIL", ip=client_ip(request), meta={"path": str(out_path)})
        raise HTTPException(status_code=500, detail=f"Error saving PDF: {e}")

    write_log(db, user_id=current_user.id, action="REPORT_PDF", resource="reports",
              status="SUCCESS", ip=client_ip(request),
              meta={"path": str(out_path), "rows": len(items)})

    return FileResponse(
        path=str(out_path),
        media_type="application/pdf",
        filename=out_path.name,
        headers={"X-Report-Path": str(out_path)},
    )
