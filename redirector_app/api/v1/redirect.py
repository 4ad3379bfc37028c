from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import HTMLResponse
from redirector_app.services.redirect_pipeline import RedirectPipeline
from redirector_app.dependencies import get_redirect_pipeline

router = APIRouter(tags=["redirect"])


@router.get("/{code}", response_class=HTMLResponse)
def follow_short_link(
    code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: RedirectPipeline = Depends(get_redirect_pipeline)
):
    """
    Follow a short link.
    
    Responds with one of:
    - 200 verifying page that navigates to the target (click recorded in background)
    - 403 bypass page when a partner link is opened from elsewhere
    - 404 / 410 for unknown / expired codes
    - 500 generic page on unexpected errors
    
    Geolocation and click writes run as a background task after the
    response is sent, so the visitor never waits on them.

    Plain def: the datastore calls are blocking, so Starlette runs this
    in its threadpool instead of on the event loop.
    """
    return pipeline.handle(code, request, background_tasks)
