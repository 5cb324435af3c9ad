from typing import Callable, Dict, Type

from pydantic import BaseModel

from app.schemas.state import (
    AnalysisCompleted,
    AnalysisFailed,
    AnalysisStarted,
    ImageAccepted,
    ImageRejected,
    Notice,
    NoticeDismissed,
    ResetRequested,
    UiState,
)
from app.core.validators import format_file_size

INITIAL_STATE = UiState()

# ============================================================
# TRANSITIONS
# Every handler is pure: (state, event) -> new state.
# ============================================================

def _image_accepted(state: UiState, event: ImageAccepted) -> UiState:
    image = event.image
    if image.source == "webcam":
        message = "Image captured from webcam"
    else:
        message = f"Image uploaded: {image.name} ({format_file_size(image.size)})"
    return state.model_copy(update={
        "selected_image": image,
        "preview_url": event.preview_url,
        "result": None,
        "error": None,
        "notice": Notice(message=message, severity="success"),
    })

def _image_rejected(state: UiState, event: ImageRejected) -> UiState:
    # selection and preview stay as they were
    return state.model_copy(update={
        "error": event.message,
        "notice": Notice(message=event.message, severity="error"),
    })

def _analysis_started(state: UiState, event: AnalysisStarted) -> UiState:
    return state.model_copy(update={
        "is_processing": True,
        "result": None,
        "error": None,
        "notice": None,
    })

def _analysis_completed(state: UiState, event: AnalysisCompleted) -> UiState:
    return state.model_copy(update={
        "is_processing": False,
        "result": event.view,
        "error": None,
        "notice": event.notice,
    })

def _analysis_failed(state: UiState, event: AnalysisFailed) -> UiState:
    return state.model_copy(update={
        "is_processing": False,
        "result": None,
        "error": event.message,
        "notice": Notice(message=event.message, severity="error"),
    })

def _reset(state: UiState, event: ResetRequested) -> UiState:
    return INITIAL_STATE

def _notice_dismissed(state: UiState, event: NoticeDismissed) -> UiState:
    return state.model_copy(update={"notice": None})

_HANDLERS: Dict[Type[BaseModel], Callable[[UiState, BaseModel], UiState]] = {
    ImageAccepted: _image_accepted,
    ImageRejected: _image_rejected,
    AnalysisStarted: _analysis_started,
    AnalysisCompleted: _analysis_completed,
    AnalysisFailed: _analysis_failed,
    ResetRequested: _reset,
    NoticeDismissed: _notice_dismissed,
}

def transition(state: UiState, event: BaseModel) -> UiState:
    try:
        handler = _HANDLERS[type(event)]
    except KeyError:
        raise TypeError(f"Unknown UI event: {type(event).__name__}") from None
    return handler(state, event)
