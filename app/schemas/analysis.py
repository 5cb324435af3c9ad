
from pydantic import BaseModel, Field, TypeAdapter
from typing import Annotated, List, Literal, Optional, Union

# ------------------------------------------------------------
# Analysis service response
# ------------------------------------------------------------

class AgeAnnotation(BaseModel):
    age: Union[int, float, str, None] = None
    box: Optional[Annotated[List[Union[int, float]], Field(min_length=4, max_length=4)]] = None

class AgeCheckSummary(BaseModel):
    annotated_image_url: Optional[str] = None
    kids_count: Optional[int] = None
    adults_count: Optional[int] = None
    annotations: List[AgeAnnotation] = []
    has_faces: Optional[bool] = None

class RegionResult(BaseModel):
    region: str
    label: str
    confidence: float

class FinalDecision(BaseModel):
    final_decision: str

class AutismPredictionData(BaseModel):
    annotated_image_path: Optional[str] = None
    results: List[Union[RegionResult, FinalDecision]] = []

    @property
    def regions(self) -> List[RegionResult]:
        return [r for r in self.results if isinstance(r, RegionResult)]

    @property
    def decisions(self) -> List[str]:
        return [r.final_decision for r in self.results if isinstance(r, FinalDecision)]

class ChildScreenedResponse(BaseModel):
    status: Literal["child_autism_screened"]
    message: Optional[str] = None
    age_check_summary: Optional[AgeCheckSummary] = None
    autism_prediction_data: Optional[AutismPredictionData] = None

class AdultInvalidResponse(BaseModel):
    # no autism_prediction_data field: adults never carry screening output
    status: Literal["adult_invalid"]
    message: Optional[str] = None
    age_check_summary: Optional[AgeCheckSummary] = None
    # Older service builds put the age image at the top level
    annotated_image_url: Optional[str] = None

AnalysisResponse = Annotated[
    Union[ChildScreenedResponse, AdultInvalidResponse],
    Field(discriminator="status"),
]

analysis_response_adapter = TypeAdapter(AnalysisResponse)

# ------------------------------------------------------------
# Rendered views
# ------------------------------------------------------------

class AnnotationRow(BaseModel):
    age: Union[int, float, str, None] = None
    box_text: Optional[str] = None

class AgeSummaryView(BaseModel):
    image_url: Optional[str] = None
    has_counts: bool = False
    kids_count: int = 0
    adults_count: int = 0
    faces_detected: int = 0
    counts_text: str = "Kids: 0 | Adults: 0"
    annotations: List[AnnotationRow] = []
    no_faces: bool = False

class RegionRow(BaseModel):
    region: str
    label: str
    confidence: float
    confidence_text: str
    band: Literal["high", "medium", "low"]

class ChildScreenedView(BaseModel):
    kind: Literal["child_autism_screened"] = "child_autism_screened"
    message: Optional[str] = None
    autism_image_url: Optional[str] = None
    regions: List[RegionRow] = []
    final_decision: Optional[str] = None
    age_summary: Optional[AgeSummaryView] = None

class AdultInvalidView(BaseModel):
    kind: Literal["adult_invalid"] = "adult_invalid"
    message: Optional[str] = None
    notice: str
    age_summary: Optional[AgeSummaryView] = None

class UnexpectedFormatView(BaseModel):
    kind: Literal["unexpected"] = "unexpected"
    message: Optional[str] = None
    notice: str

ResultView = Annotated[
    Union[ChildScreenedView, AdultInvalidView, UnexpectedFormatView],
    Field(discriminator="kind"),
]
