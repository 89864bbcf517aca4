"""API endpoints exposing the weather state and user actions."""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, status
from pydantic import BaseModel, Field

from flame_weather.controller import WeatherController
from flame_weather.state import AppState
from flame_weather.weather.models import Language, LocationCandidate
from flame_weather.widget import WidgetPublisher, WidgetView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/weather", tags=["weather"])


class QueryEdit(BaseModel):
    """Current text of the search box."""
    text: str = Field("", description="Search text, possibly empty")


class LocationSelection(BaseModel):
    """A place chosen by the user, either by candidate index or explicitly."""
    index: Optional[int] = Field(None, ge=0, description="Index into the current candidate list")
    candidate: Optional[LocationCandidate] = Field(None, description="Explicit place")


class LanguageChoice(BaseModel):
    language: Language


def get_controller(request: Request) -> WeatherController:
    """Controller created in the application lifespan."""
    return request.app.state.controller


def get_widget(request: Request) -> WidgetPublisher:
    return request.app.state.widget


@router.get("/", response_model=AppState)
async def get_state(request: Request) -> AppState:
    """Current weather snapshot, status text and location mode."""
    return get_controller(request).store.state


@router.post("/query", status_code=status.HTTP_202_ACCEPTED)
async def edit_query(edit: QueryEdit, request: Request) -> dict:
    """Feed a search box edit into the debounced place search."""
    get_controller(request).on_query_changed(edit.text)
    return {"accepted": True}


@router.get("/candidates", response_model=List[LocationCandidate])
async def get_candidates(request: Request) -> List[LocationCandidate]:
    return list(get_controller(request).store.state.candidates)


@router.post("/location/select", response_model=AppState)
async def select_location(selection: LocationSelection, request: Request) -> AppState:
    """Switch to a manual location and load its weather.

    Raises:
        HTTPException: If neither index nor candidate is given, or the index is out of range
    """
    controller = get_controller(request)
    candidate = selection.candidate
    if candidate is None:
        if selection.index is None:
            raise HTTPException(status_code=400, detail="Provide either 'index' or 'candidate'.")
        candidates = controller.store.state.candidates
        if selection.index >= len(candidates):
            raise HTTPException(status_code=404, detail=f"No candidate at index {selection.index}")
        candidate = candidates[selection.index]

    logger.info(f"Manual location selected: {candidate.display_name}")
    await controller.select_candidate(candidate)
    return controller.store.state


@router.post("/location/auto", status_code=status.HTTP_202_ACCEPTED, response_model=AppState)
async def reset_location(request: Request, background_tasks: BackgroundTasks) -> AppState:
    """Return to automatic location; resolution continues in the background."""
    controller = get_controller(request)
    background_tasks.add_task(controller.reset_location)
    return controller.store.state


@router.post("/refresh", status_code=status.HTTP_202_ACCEPTED, response_model=AppState)
async def refresh(request: Request, background_tasks: BackgroundTasks) -> AppState:
    controller = get_controller(request)
    background_tasks.add_task(controller.refresh)
    return controller.store.state


@router.put("/language", response_model=AppState)
async def set_language(choice: LanguageChoice, request: Request) -> AppState:
    controller = get_controller(request)
    controller.set_language(choice.language)
    return controller.store.state


@router.get("/widget", response_model=WidgetView)
async def get_widget_view(request: Request) -> WidgetView:
    """Widget content as last drawn from the persisted cache."""
    return get_widget(request).view


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Health status response
    """
    return {"status": "healthy", "service": "flame-weather"}
