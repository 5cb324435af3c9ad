import logging
from typing import Any, Optional

from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import RenderError
from app.schemas.analysis import (
    AdultInvalidResponse,
    AdultInvalidView,
    AgeCheckSummary,
    AgeSummaryView,
    AnnotationRow,
    ChildScreenedResponse,
    ChildScreenedView,
    RegionRow,
    UnexpectedFormatView,
    analysis_response_adapter,
)
from app.schemas.state import AnalysisCompleted, Notice, UiState
from app.services.stateServices import transition

logger = logging.getLogger(__name__)

# ============================================================
# CONSTANTS
# ============================================================

HIGH_CONFIDENCE = 70.0
MEDIUM_CONFIDENCE = 40.0

ADULT_INVALID_NOTICE = (
    "Autism analysis cannot be performed on subjects above 18 years of age. "
    "Please upload an image containing children for autism screening."
)
UNEXPECTED_FORMAT_NOTICE = "Unexpected response format from the analysis service."
ANALYSIS_COMPLETE = "Analysis complete."

# ============================================================
# HELPERS
# ============================================================

def confidence_band(confidence: float) -> str:
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"

def resolve_image_url(path: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """Absolute (http*) paths are kept, anything else is served by the analysis service."""
    if not path:
        return None
    if path.startswith("http"):
        return path
    base = (settings.BASE_ORIGIN if base_url is None else base_url).rstrip("/")
    return f"{base}{path}"

def _age_summary(
    summary: Optional[AgeCheckSummary],
    base_url: Optional[str],
    fallback_image: Optional[str] = None,
) -> Optional[AgeSummaryView]:
    if summary is None and not fallback_image:
        return None
    summary = summary or AgeCheckSummary()

    kids = summary.kids_count or 0
    adults = summary.adults_count or 0
    return AgeSummaryView(
        image_url=resolve_image_url(summary.annotated_image_url or fallback_image, base_url),
        has_counts=summary.kids_count is not None or summary.adults_count is not None,
        kids_count=kids,
        adults_count=adults,
        faces_detected=kids + adults,
        counts_text=f"Kids: {kids} | Adults: {adults}",
        annotations=[
            AnnotationRow(
                age=a.age,
                box_text=f"[{', '.join(str(v) for v in a.box)}]" if a.box else None,
            )
            for a in summary.annotations
        ],
        no_faces=summary.has_faces is False,
    )

# ============================================================
# BRANCHES
# ============================================================

def _child_view(response: ChildScreenedResponse, base_url: Optional[str]) -> ChildScreenedView:
    autism = response.autism_prediction_data
    regions = []
    final_decision = None
    autism_image_url = None

    if autism is not None:
        autism_image_url = resolve_image_url(autism.annotated_image_path, base_url)
        regions = [
            RegionRow(
                region=r.region,
                label=r.label,
                confidence=r.confidence,
                confidence_text=f"{r.confidence:.1f}%",
                band=confidence_band(r.confidence),
            )
            for r in autism.regions
        ]
        decisions = autism.decisions
        if len(decisions) > 1:
            logger.warning("Response carried %d final decisions, using the first", len(decisions))
        final_decision = decisions[0] if decisions else None

    return ChildScreenedView(
        message=response.message,
        autism_image_url=autism_image_url,
        regions=regions,
        final_decision=final_decision,
        age_summary=_age_summary(response.age_check_summary, base_url),
    )

def _adult_view(response: AdultInvalidResponse, base_url: Optional[str]) -> AdultInvalidView:
    logger.warning("Autism screening disabled: only adults detected in the image")
    return AdultInvalidView(
        message=response.message,
        notice=ADULT_INVALID_NOTICE,
        age_summary=_age_summary(response.age_check_summary, base_url, response.annotated_image_url),
    )

def build_view(payload: Any, base_url: Optional[str] = None):
    """Maps a raw response document onto one of the three result views."""
    try:
        response = analysis_response_adapter.validate_python(payload)
    except ValidationError as e:
        raise RenderError(f"Unrecognised analysis response: {e.error_count()} problem(s)") from e

    if isinstance(response, ChildScreenedResponse):
        return _child_view(response, base_url)
    if isinstance(response, AdultInvalidResponse):
        return _adult_view(response, base_url)
    raise RenderError(f"No view for status {response.status!r}")

# ============================================================
# MAIN RENDER
# ============================================================

def render(payload: Any, previous_state: UiState, base_url: Optional[str] = None) -> UiState:
    """
    Pure: (response, previous state) -> next state.
    Never raises; anything it cannot interpret becomes the unexpected-format view.
    """
    message = payload.get("message") if isinstance(payload, dict) else None
    if not isinstance(message, str):
        message = None

    try:
        view = build_view(payload, base_url)
    except (RenderError, TypeError, ValueError, AttributeError) as e:
        logger.warning("Falling back to unexpected-format view: %s", e)
        view = UnexpectedFormatView(message=message, notice=UNEXPECTED_FORMAT_NOTICE)

    if view.kind == "adult_invalid":
        severity = "warning"
    elif view.kind == "unexpected":
        severity = "info"
    else:
        severity = "success"

    notice = Notice(message=message or ANALYSIS_COMPLETE, severity=severity)
    return transition(previous_state, AnalysisCompleted(view=view, notice=notice))
