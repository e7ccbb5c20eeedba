from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_optional_session, get_report_service
from app.core.entitlements import resolve_blur
from app.core.errors import InvalidRequestError, NotFoundError
from app.domain.schemas import UserSession
from app.services.reports import ReportService, UnknownSectionError

router = APIRouter()

MIN_QUERY_LENGTH = 2


@router.get("/search")
async def search_suburbs(
    q: str = "",
    state: str = "",
    page: int = 1,
    limit: int = 10,
    reports: ReportService = Depends(get_report_service),
):
    if len(q) < MIN_QUERY_LENGTH:
        return {"results": []}
    return await reports.search_suburbs(q, state=state, page=page, limit=limit)


@router.get("/{name}")
async def get_suburb(
    name: str,
    section: Optional[str] = None,
    blur: bool = False,
    property_type: str = Query(default="house"),
    session: Optional[UserSession] = Depends(get_optional_session),
    reports: ReportService = Depends(get_report_service),
):
    """Suburb overview, or one report section when `section` is given."""
    if section:
        try:
            data = await reports.get_suburb_section(
                name,
                section,
                blur=resolve_blur(session, blur),
                property_type=property_type,
            )
        except UnknownSectionError:
            raise InvalidRequestError("Unknown section")
        return {"data": data, "section": section}

    overview = await reports.get_suburb_overview(name)
    if not overview:
        raise NotFoundError("Suburb not found")
    return overview
