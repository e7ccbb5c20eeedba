from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_optional_session, get_report_service
from app.core.config import Settings, get_settings
from app.core.entitlements import resolve_blur
from app.core.errors import InvalidRequestError, NotFoundError
from app.domain.schemas import UserSession
from app.services.reports import ReportService, UnknownSectionError

router = APIRouter()

MIN_QUERY_LENGTH = 3


@router.get("/search")
async def search_properties(
    q: str = "",
    reports: ReportService = Depends(get_report_service),
    settings: Settings = Depends(get_settings),
):
    """Address autocomplete."""
    if len(q) < MIN_QUERY_LENGTH:
        return {"suggestions": []}
    return await reports.search_properties(q, use_sample_fallback=settings.use_sample_fallback)


@router.get("/{gnaf_id}")
async def get_property(
    gnaf_id: str,
    section: Optional[str] = None,
    blur: bool = False,
    session: Optional[UserSession] = Depends(get_optional_session),
    reports: ReportService = Depends(get_report_service),
):
    """Property overview, or one report section when `section` is given."""
    effective_blur = resolve_blur(session, blur)

    if section:
        try:
            data = await reports.get_property_section(gnaf_id, section, blur=effective_blur)
        except UnknownSectionError:
            raise InvalidRequestError("Unknown section")
        return {"data": data, "section": section}

    overview = await reports.get_property_overview(gnaf_id, blur=effective_blur)
    if not overview:
        raise NotFoundError("Property not found")
    return overview
