
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Literal, Optional

from app.schemas.analysis import ResultView

ImageSource = Literal["upload", "drop", "webcam"]
Severity = Literal["success", "info", "warning", "error"]

class SelectedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    content_type: str
    size: int
    source: ImageSource = "upload"
    data: bytes = Field(default=b"", exclude=True, repr=False)

class Notice(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    severity: Severity = "info"

class UiState(BaseModel):
    """Everything the results page needs, owned by one controller per session."""

    model_config = ConfigDict(frozen=True)

    selected_image: Optional[SelectedImage] = None
    preview_url: Optional[str] = None
    is_processing: bool = False
    result: Optional[ResultView] = None
    error: Optional[str] = None
    notice: Optional[Notice] = None

    @computed_field
    @property
    def can_analyze(self) -> bool:
        return self.selected_image is not None and not self.is_processing

# ------------------------------------------------------------
# Events
# ------------------------------------------------------------

class ImageAccepted(BaseModel):
    image: SelectedImage
    preview_url: str

class ImageRejected(BaseModel):
    message: str

class AnalysisStarted(BaseModel):
    pass

class AnalysisCompleted(BaseModel):
    view: ResultView
    notice: Notice

class AnalysisFailed(BaseModel):
    message: str

class ResetRequested(BaseModel):
    pass

class NoticeDismissed(BaseModel):
    pass
