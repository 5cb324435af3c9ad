import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from app.core.config import settings
from app.core.errors import ScreeningError
from app.core.logger import configure_logging
from app.core.limiter import limiter
from app.core.responses import ResponseTemplate
from app.api.routes import router
from app.services.analysisServices import AnalysisClient
from app.services.sessionServices import SessionStore

configure_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # wait_for in AnalysisClient owns the deadline, so httpx gets none of its own
    http = httpx.AsyncClient(timeout=None)
    app.state.analysis_client = AnalysisClient(http, settings)
    logger.info("Using analysis service at %s", settings.ANALYZE_URL)
    try:
        yield
    finally:
        await http.aclose()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

app.state.sessions = SessionStore()

# Add Limiter to app state
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Rate Limit Exception Handler
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return ResponseTemplate.error(f"Rate limit exceeded: {exc.detail}", status_code=429)

# Global Exception Handlers
@app.exception_handler(ScreeningError)
async def screening_exception_handler(request: Request, exc: ScreeningError):
    return ResponseTemplate.error(exc.message, status_code=exc.status_code)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return ResponseTemplate.error(str(exc.detail), status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Construct error detail map
    errors = {}
    for error in exc.errors():
        # Get the field name, default to 'unknown' if loc is empty
        field = error.get("loc", ["unknown"])[-1]
        errors[str(field)] = error.get("msg")

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "status_code": 422,
            "message": "Validation Error",
            "error": errors
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return ResponseTemplate.error(f"Internal Server Error: {str(exc)}", status_code=500)

@app.get("/health")
def health():
    return {"status": "ok", "version": settings.VERSION}

# Include the router
app.include_router(router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
