import csv
import io
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from app.api.deps import get_backend_client, require_session
from app.core.config import Settings, get_settings
from app.core.entitlements import require_feature
from app.domain.reference_data import sample_orders
from app.domain.schemas import UserSession
from app.services.backend import BackendClient

logger = logging.getLogger(__name__)

router = APIRouter()

ALL_CATEGORIES = "All"
CSV_COLUMNS = ["order_id", "date", "report_category", "location", "client", "pdf_report", "url"]


async def load_orders(
    session: UserSession,
    backend: BackendClient,
    settings: Settings,
    report_category: Optional[str],
) -> tuple[list[dict], bool]:
    """Orders for the session's user, and whether they are sample data."""
    orders = await backend.get_user_orders(session.user_email, report_category)
    if orders is not None:
        logger.info(f"[Orders] Got {len(orders)} orders from backend")
        return orders, False

    logger.info("[Orders] Using sample data fallback")
    fallback = sample_orders(settings.flask_backend_url)
    if report_category and report_category != ALL_CATEGORIES:
        fallback = [order for order in fallback if order["report_category"] == report_category]
    return [{**order, "user_email": session.user_email} for order in fallback], True


@router.get("")
async def list_orders(
    report_category: Optional[str] = Query(default=None),
    session: UserSession = Depends(require_session),
    backend: BackendClient = Depends(get_backend_client),
    settings: Settings = Depends(get_settings),
):
    """The user's report order history."""
    orders, is_fallback = await load_orders(session, backend, settings, report_category)
    body = {"success": True, "orders": orders}
    if is_fallback:
        body["_fallback"] = True
    return body


@router.get("/export")
async def export_orders(
    report_category: Optional[str] = Query(default=None),
    session: UserSession = Depends(require_feature("csv_export")),
    backend: BackendClient = Depends(get_backend_client),
    settings: Settings = Depends(get_settings),
):
    """Download the order history as CSV."""
    orders, _ = await load_orders(session, backend, settings, report_category)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, restval="", extrasaction="ignore")
    writer.writeheader()
    for order in orders:
        if isinstance(order, dict):
            writer.writerow(order)

    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="orders.csv"'},
    )
