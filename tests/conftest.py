import httpx
import pytest

from app.core.config import Settings
from app.schemas.state import SelectedImage
from app.services.analysisServices import AnalysisClient
from app.services.previewServices import PreviewStore

BASE_URL = "http://analysis.test"

# Smallest PNG signature + IHDR chunk; the client never decodes images
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
)

@pytest.fixture
def anyio_backend():
    """Configure the async test backend to use asyncio only."""
    return 'asyncio'

@pytest.fixture
def config():
    return Settings(
        ANALYSIS_API_BASE_URL=BASE_URL,
        REQUEST_TIMEOUT_SECONDS=0.2,
        HEALTH_TIMEOUT_SECONDS=0.2,
    )

@pytest.fixture
def image():
    return SelectedImage(
        name="face.png",
        content_type="image/png",
        size=len(PNG_BYTES),
        data=PNG_BYTES,
    )

@pytest.fixture
def previews():
    return PreviewStore()

@pytest.fixture
def make_client(config):
    """Build an AnalysisClient whose HTTP traffic goes to ``handler``."""
    def _make(handler):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return AnalysisClient(http, config)

    return _make
