from __future__ import annotations

from fastapi import APIRouter

from leadfunnel.core.config import settings
from leadfunnel.schemas.responses import SiteConfigResponse
from leadfunnel.schemas.submission import LANGUAGES, NEED_IDS, STAGES

router = APIRouter(tags=["site"])


@router.get("/site-config", response_model=SiteConfigResponse)
async def site_config() -> SiteConfigResponse:
    """Public settings the page shell needs before rendering the form."""
    return SiteConfigResponse(
        gaMeasurementId=settings.ga_measurement_id,
        languages=list(LANGUAGES),
        services=list(NEED_IDS),
        stages=list(STAGES),
    )
