from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from flows_api.application.services.flow_controller import FlowController, ViewStatus
from flows_api.infrastructure.config import get_settings
from flows_api.infrastructure.sankey_renderer import Viewport, render_diagram_html, render_message_html
from flows_api.interfaces.api.dependencies import get_controller

router = APIRouter()

_LOADING_REFRESH_SECONDS = 1


@router.get("/", response_class=HTMLResponse)
def get_view(
    width: int | None = Query(None, ge=1, le=20_000),
    height: int | None = Query(None, ge=1, le=20_000),
    controller: FlowController = Depends(get_controller),  # noqa: B008
) -> HTMLResponse:
    snapshot = controller.snapshot

    if snapshot.status is ViewStatus.LOADING:
        page = render_message_html("Loading grant data...", refresh_seconds=_LOADING_REFRESH_SECONDS)
        return HTMLResponse(page)
    if snapshot.status is ViewStatus.ERROR:
        return HTMLResponse(render_message_html(f"Error: {snapshot.error}", is_error=True))
    if snapshot.is_empty:
        return HTMLResponse(render_message_html("No grant data available."))

    settings = get_settings()
    viewport = Viewport(
        width=width or settings.viewport_width,
        height=height or settings.viewport_height,
    )
    return HTMLResponse(render_diagram_html(snapshot.graph, viewport))
