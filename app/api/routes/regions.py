from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_optional_session, get_report_service
from app.core.entitlements import resolve_blur
from app.core.errors import InvalidRequestError, NotFoundError
from app.domain.schemas import UserSession
from app.services.reports import ReportService, UnknownSectionError

router = APIRouter()

MIN_QUERY_LENGTH = 2
REGION_NOT_FOUND = "Could not find suburbs in this region"


@router.get("/search")
async def search_regions(
    q: str = "",
    state: str = "",
    reports: ReportService = Depends(get_report_service),
):
    if len(q) < MIN_QUERY_LENGTH:
        return {"results": []}
    return await reports.search_regions(q, state=state)


@router.get("/{name}")
async def get_region(
    name: str,
    section: Optional[str] = None,
    blur: bool = False,
    session: Optional[UserSession] = Depends(get_optional_session),
    reports: ReportService = Depends(get_report_service),
):
    """SA3 region overview, or one section read through a representative suburb."""
    if section:
        try:
            result = await reports.get_region_section(name, section, blur=resolve_blur(session, blur))
        except UnknownSectionError:
            raise InvalidRequestError("Unknown section")
    else:
        result = await reports.get_region_overview(name)

    if not result:
        raise NotFoundError(REGION_NOT_FOUND)
    return result
