from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse

from cart_whisperer.core.dependencies import get_event_recorder
from cart_whisperer.core.errors import ValidationAppError
from cart_whisperer.services.tracking import TRACKING_PIXEL_GIF, EmailEventRecorder

router = APIRouter(prefix="/track", tags=["Tracking"])

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/open/{tracking_id}")
async def track_open(
    tracking_id: str,
    recorder: Annotated[EmailEventRecorder, Depends(get_event_recorder)],
) -> Response:
    """Record an email open and serve a transparent 1x1 GIF."""
    await recorder.record(tracking_id, "opened")
    return Response(
        content=TRACKING_PIXEL_GIF,
        media_type="image/gif",
        headers=_NO_CACHE_HEADERS,
    )


@router.get("/click/{tracking_id}")
async def track_click(
    tracking_id: str,
    recorder: Annotated[EmailEventRecorder, Depends(get_event_recorder)],
    url: Annotated[str | None, Query()] = None,
) -> RedirectResponse:
    """Record a link click and redirect to the original target."""
    if not url:
        raise ValidationAppError(code="missing_url", message="No URL provided")
    if not url.lower().startswith(("http://", "https://")):
        raise ValidationAppError(
            code="invalid_url",
            message="Only http(s) URLs can be tracked",
        )

    await recorder.record(tracking_id, "clicked", link_url=url)
    return RedirectResponse(url, status_code=302)
