import logging
import secrets
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from fastapi import UploadFile
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import AnalysisInProgress, InvalidFile, ScreeningError
from app.core.validators import decode_capture, read_upload, validate_image
from app.schemas.state import (
    AnalysisFailed,
    AnalysisStarted,
    ImageAccepted,
    ImageRejected,
    ImageSource,
    NoticeDismissed,
    ResetRequested,
    SelectedImage,
    UiState,
)
from app.services.analysisServices import AnalysisClient
from app.services.previewServices import PreviewStore, preview_store
from app.services.renderServices import render
from app.services.stateServices import INITIAL_STATE, transition

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "Something went wrong while analyzing the image. Please try again."

class ScreeningController:
    """
    Owns the UI state of one browser session.
    State only changes through transition(); the controller adds the side
    effects around it (preview handles, the network call).
    """

    def __init__(self, previews: Optional[PreviewStore] = None):
        self.previews = previews if previews is not None else preview_store
        self.state: UiState = INITIAL_STATE
        # bumped on reset so a late completion cannot land on a fresh state
        self._generation = 0

    def dispatch(self, event: BaseModel) -> UiState:
        self.state = transition(self.state, event)
        return self.state

    # -----------------
    # Input capture
    # -----------------

    async def select_upload(self, file: Optional[UploadFile], source: ImageSource = "upload") -> UiState:
        self._ensure_idle()
        try:
            image = await read_upload(file, source)
        except InvalidFile as e:
            self.dispatch(ImageRejected(message=e.message))
            raise
        return self._accept(image)

    def select_capture(self, data_url: str) -> UiState:
        self._ensure_idle()
        try:
            image = decode_capture(data_url)
        except InvalidFile as e:
            self.dispatch(ImageRejected(message=e.message))
            raise
        return self._accept(image)

    def select_image(self, image: SelectedImage) -> UiState:
        self._ensure_idle()
        try:
            validate_image(image)
        except InvalidFile as e:
            self.dispatch(ImageRejected(message=e.message))
            raise
        return self._accept(image)

    def _accept(self, image: SelectedImage) -> UiState:
        # an analyze may have started while the upload was being read
        self._ensure_idle()
        # old handle goes before the new one is made
        if self.state.preview_url:
            self.previews.release(self.state.preview_url)
        preview_url = self.previews.create(image.data, image.content_type)
        logger.info("Accepted %s image %s (%d bytes)", image.source, image.name, image.size)
        return self.dispatch(ImageAccepted(image=image, preview_url=preview_url))

    # -----------------
    # Submission
    # -----------------

    async def analyze(self, client: AnalysisClient) -> UiState:
        self._ensure_idle()
        image = self.state.selected_image
        try:
            validate_image(image)
        except InvalidFile as e:
            self.dispatch(ImageRejected(message=e.message))
            raise

        self.dispatch(AnalysisStarted())
        generation = self._generation
        try:
            payload = await client.submit(image)
        except ScreeningError as e:
            if generation == self._generation:
                self.dispatch(AnalysisFailed(message=e.message))
            return self.state
        except Exception:
            logger.exception("Unexpected failure while submitting %s", image.name)
            if generation == self._generation:
                self.dispatch(AnalysisFailed(message=UNEXPECTED_ERROR))
            raise

        if generation != self._generation:
            logger.info("Discarding analysis result for %s: session was reset", image.name)
            return self.state

        self.state = render(payload, self.state, client.config.BASE_ORIGIN)
        return self.state

    # -----------------
    # Housekeeping
    # -----------------

    def reset(self) -> UiState:
        if self.state.preview_url:
            self.previews.release(self.state.preview_url)
        self._generation += 1
        return self.dispatch(ResetRequested())

    def dismiss_notice(self) -> UiState:
        return self.dispatch(NoticeDismissed())

    def _ensure_idle(self) -> None:
        if self.state.is_processing:
            raise AnalysisInProgress()

class SessionStore:
    """
    Controllers keyed by the session cookie. Memory only.
    Sessions idle for longer than the TTL, or beyond the size cap (least
    recently used first), are reset on eviction so their previews are released.
    """

    def __init__(
        self,
        previews: Optional[PreviewStore] = None,
        ttl_seconds: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.previews = previews if previews is not None else preview_store
        self.ttl_seconds = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.max_sessions = settings.MAX_SESSIONS if max_sessions is None else max_sessions
        self.clock = clock
        # session_id -> (controller, last used), oldest first
        self._sessions: "OrderedDict[str, Tuple[ScreeningController, float]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get_or_create(self, session_id: Optional[str]) -> Tuple[str, ScreeningController]:
        now = self.clock()
        self.evict_idle(now)

        if session_id and session_id in self._sessions:
            controller, _ = self._sessions.pop(session_id)
            self._sessions[session_id] = (controller, now)
            return session_id, controller

        session_id = secrets.token_urlsafe(24)
        controller = ScreeningController(self.previews)
        self._sessions[session_id] = (controller, now)

        while len(self._sessions) > self.max_sessions:
            oldest = next(iter(self._sessions))
            self._evict(oldest)
        return session_id, controller

    def evict_idle(self, now: Optional[float] = None) -> int:
        now = self.clock() if now is None else now
        expired = [sid for sid, (_, last_used) in self._sessions.items() if now - last_used > self.ttl_seconds]
        for sid in expired:
            self._evict(sid)
        return len(expired)

    def _evict(self, session_id: str) -> None:
        controller, _ = self._sessions.pop(session_id)
        controller.reset()
        logger.info("Evicted session %s...", session_id[:8])
