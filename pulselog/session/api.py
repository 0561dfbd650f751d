# -*- coding: utf-8 -*-
"""Heart-rate session — API endpoints.

The form, the Save/Load buttons, the history list and the dismissible error
of the recording screen, exposed over HTTP.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ..config import settings
from ..healthstore import create_store_client
from ..healthstore.api import get_store
from .controller import HeartRateSessionController
from .models import PermissionStatusResponse, SampleSubmitRequest, SessionStateResponse

router = APIRouter(prefix="/api/session", tags=["Session"])

_controller: Optional[HeartRateSessionController] = None


def get_controller() -> HeartRateSessionController:
    global _controller
    if _controller is None or _controller.closed:
        # Local backends share the instance served by the store router.
        store = create_store_client() if settings.store_backend == "remote" else get_store()
        _controller = HeartRateSessionController(store)
    return _controller


def shutdown_controller() -> None:
    global _controller
    if _controller is not None:
        _controller.close()
        _controller = None


def _respond(controller: HeartRateSessionController) -> SessionStateResponse:
    return SessionStateResponse.from_state(controller.state, controller.tz)


@router.get("", response_model=SessionStateResponse, summary="Current session state")
def get_state(controller: HeartRateSessionController = Depends(get_controller)):
    return _respond(controller)


@router.post("/records", response_model=SessionStateResponse, summary="Validate and save one heart rate sample")
async def submit_record(request: SampleSubmitRequest, controller: HeartRateSessionController = Depends(get_controller)):
    """Validation and store failures come back in ``error``, not as HTTP errors."""
    await controller.submit(request.heart_rate, request.timestamp)
    return _respond(controller)


@router.post("/load", response_model=SessionStateResponse, summary="Reload the last 24 hours of samples")
async def load_records(controller: HeartRateSessionController = Depends(get_controller)):
    await controller.load()
    return _respond(controller)


@router.delete("/error", response_model=SessionStateResponse, summary="Dismiss the current error")
def dismiss_error(controller: HeartRateSessionController = Depends(get_controller)):
    controller.clear_error()
    return _respond(controller)


def _permission_status(controller: HeartRateSessionController) -> PermissionStatusResponse:
    return PermissionStatusResponse(
        granted=controller.state.permissions_granted,
        required=sorted(c.value for c in controller.gate.required),
        error=controller.state.error,
    )


@router.get("/permissions", response_model=PermissionStatusResponse, summary="Check heart rate permissions")
async def check_permissions(controller: HeartRateSessionController = Depends(get_controller)):
    await controller.refresh_permissions()
    return _permission_status(controller)


@router.post("/permissions/request", response_model=PermissionStatusResponse, summary="Request heart rate permissions")
async def request_permissions(controller: HeartRateSessionController = Depends(get_controller)):
    await controller.request_permissions()
    return _permission_status(controller)


@router.post("/permissions/settings", response_model=SessionStateResponse, summary="Open the health store settings")
def open_settings(controller: HeartRateSessionController = Depends(get_controller)):
    controller.open_settings()
    return _respond(controller)
