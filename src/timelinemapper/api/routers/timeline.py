"""
API Routes for timeline navigation.

Endpoints
---------
- `GET /timeline`: Current navigator state (cursor, filter, visible events).
- `POST /timeline/next` / `POST /timeline/previous`: Move the cursor.
- `POST /timeline/goto/{index}`: Jump to an event.
- `PUT /timeline/filter`: Turn "events up to the current one" mode on/off.
- `POST /timeline/reload`: Re-run the extraction against the source.

Every endpoint answers with the resulting :class:`TimelineStateOut`, so a
client never has to issue a second request to see what changed.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from timelinemapper.api.schemas import FilterRequest, TimelineStateOut
from timelinemapper.timeline.session import TimelineSession

router = APIRouter(prefix="/timeline", tags=["Timeline"])


def _session(request: Request) -> TimelineSession:
    session: TimelineSession | None = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No timeline is configured",
        )
    return session


@router.get("", response_model=TimelineStateOut, summary="Get the timeline state")
async def get_timeline(request: Request) -> TimelineStateOut:
    return TimelineStateOut.from_navigator(_session(request).navigator)


@router.post("/next", response_model=TimelineStateOut, summary="Go to the next event")
async def next_event(request: Request) -> TimelineStateOut:
    navigator = _session(request).navigator
    navigator.next()
    return TimelineStateOut.from_navigator(navigator)


@router.post("/previous", response_model=TimelineStateOut, summary="Go to the previous event")
async def previous_event(request: Request) -> TimelineStateOut:
    navigator = _session(request).navigator
    navigator.previous()
    return TimelineStateOut.from_navigator(navigator)


@router.post("/goto/{index}", response_model=TimelineStateOut, summary="Jump to an event")
async def goto_event(index: int, request: Request) -> TimelineStateOut:
    navigator = _session(request).navigator
    try:
        navigator.goto(index)
    except IndexError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return TimelineStateOut.from_navigator(navigator)


@router.put("/filter", response_model=TimelineStateOut, summary="Set filter mode")
async def set_filter(body: FilterRequest, request: Request) -> TimelineStateOut:
    navigator = _session(request).navigator
    navigator.set_filter_mode(body.enabled)
    return TimelineStateOut.from_navigator(navigator)


@router.post("/reload", response_model=TimelineStateOut, summary="Rebuild the events")
async def reload_timeline(request: Request) -> TimelineStateOut:
    """
    Re-run the extraction.

    On failure the previous events stay in place and the error is returned
    with a status code that reflects its kind (see the app's exception handler).
    """
    session = _session(request)
    await session.reload()
    return TimelineStateOut.from_navigator(session.navigator)


__all__ = ["router"]
