from pathlib import Path
from typing import NamedTuple, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import ScreeningError
from app.core.limiter import limiter
from app.core.responses import ResponseTemplate
from app.schemas.state import ImageSource
from app.services.analysisServices import AnalysisClient
from app.services.sessionServices import ScreeningController, SessionStore

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

router = APIRouter()
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

class CaptureRequest(BaseModel):
    image: str

class Session(NamedTuple):
    session_id: str
    controller: ScreeningController

# ============================================================
# DEPENDENCIES
# ============================================================

def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions

def get_session(request: Request, sessions: SessionStore = Depends(get_sessions)) -> Session:
    session_id, controller = sessions.get_or_create(request.cookies.get(settings.SESSION_COOKIE_NAME))
    return Session(session_id, controller)

def get_analysis_client(request: Request) -> AnalysisClient:
    return request.app.state.analysis_client

# ============================================================
# HELPERS
# ============================================================

def _with_cookie(response: Response, session: Session) -> Response:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        session.session_id,
        httponly=True,
        samesite="lax",
    )
    return response

def _state_response(session: Session) -> Response:
    return _with_cookie(ResponseTemplate.state(session.controller.state), session)

def _error_response(session: Session, exc: ScreeningError) -> Response:
    response = ResponseTemplate.error(
        message=exc.message,
        status_code=exc.status_code,
        data=session.controller.state.model_dump(mode="json"),
    )
    return _with_cookie(response, session)

# ============================================================
# PAGE
# ============================================================

@router.get("/", include_in_schema=False)
def index(request: Request, session: Session = Depends(get_session)):
    state = session.controller.state
    response = templates.TemplateResponse(
        request,
        "index.html",
        {
            "state": state,
            "title": settings.PROJECT_NAME,
            "max_size_mb": settings.MAX_FILE_SIZE // (1024 * 1024),
            "accept": ",".join(settings.ALLOWED_TYPES),
        },
    )
    return _with_cookie(response, session)

@router.get("/state")
def read_state(session: Session = Depends(get_session)):
    return _state_response(session)

# ============================================================
# INPUT CAPTURE
# ============================================================

@router.post("/image")
async def select_image(
    file: Optional[UploadFile] = File(None),
    source: ImageSource = Form("upload"),
    session: Session = Depends(get_session),
):
    """File dialog and drag-and-drop both land here."""
    try:
        await session.controller.select_upload(file, source)
    except ScreeningError as e:
        return _error_response(session, e)
    return _state_response(session)

@router.post("/capture")
def capture_image(body: CaptureRequest, session: Session = Depends(get_session)):
    try:
        session.controller.select_capture(body.image)
    except ScreeningError as e:
        return _error_response(session, e)
    return _state_response(session)

@router.get("/preview/{token}")
def preview(token: str, sessions: SessionStore = Depends(get_sessions)):
    item = sessions.previews.get(token)
    if item is None:
        return ResponseTemplate.error("Preview not found", status_code=404)
    data, content_type = item
    return Response(content=data, media_type=content_type)

# ============================================================
# SUBMISSION
# ============================================================

@router.post("/analyze")
@limiter.limit(settings.ANALYZE_RATE_LIMIT)
async def analyze(
    request: Request,
    session: Session = Depends(get_session),
    client: AnalysisClient = Depends(get_analysis_client),
):
    try:
        await session.controller.analyze(client)
    except ScreeningError as e:
        return _error_response(session, e)
    return _state_response(session)

@router.get("/api-health")
async def api_health(client: AnalysisClient = Depends(get_analysis_client)) -> JSONResponse:
    healthy = await client.check_health()
    return ResponseTemplate.success(
        data={"healthy": healthy, "url": client.config.HEALTH_URL},
        message="Analysis service is reachable" if healthy else "Analysis service is unavailable",
    )

# ============================================================
# HOUSEKEEPING
# ============================================================

@router.post("/reset")
def reset(session: Session = Depends(get_session)):
    session.controller.reset()
    return _state_response(session)

@router.post("/notice/dismiss")
def dismiss_notice(session: Session = Depends(get_session)):
    session.controller.dismiss_notice()
    return _state_response(session)
