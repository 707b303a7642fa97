from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dotenv import load_dotenv
from cineai.config import Settings
from cineai.routes import admin, movies, recommendations
from cineai.services.background_jobs import BackgroundJobService
from cineai.utils.dependencies import build_dependencies
from cineai.utils.errors import CineAIError
import logging

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

settings = Settings.from_env()


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events

    Startup:
    - Build the dependency bundle (DB pool, OMDb/Groq clients, task runner)
    - Start background jobs (cache purge, trending refresh)

    Shutdown:
    - Stop background jobs, drain detached writes, dispose the pool
    """
    logger.info("=" * 60)
    logger.info("CineAI API Starting...")
    logger.info(f"   Environment: {settings.environment}")
    logger.info(f"   OMDb configured: {bool(settings.omdb_api_key)}")
    logger.info(f"   Groq configured: {bool(settings.groq_api_key)}")
    logger.info("=" * 60)

    deps = build_dependencies(settings)
    app.state.dependencies = deps
    app.state.background_jobs = BackgroundJobService(deps)

    try:
        app.state.background_jobs.start()
    except Exception as e:
        logger.error(f"Failed to start background jobs: {str(e)}")

    yield

    logger.info("CineAI API Shutting Down...")
    try:
        app.state.background_jobs.shutdown()
    except Exception as e:
        logger.error(f"Error stopping background jobs: {str(e)}")
    deps.close()


app = FastAPI(
    title="CineAI API",
    description="AI movie recommendations backed by OMDb and Groq",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# Security Configuration
# ============================================

allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
if settings.frontend_url:
    allowed_origins.append(settings.frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# Trusted Hosts - Production only
if settings.environment == "production" and settings.trusted_hosts:
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts.split(","))


# ============================================
# Exception Handlers
# ============================================

@app.exception_handler(CineAIError)
async def cineai_error_handler(request: Request, exc: CineAIError):
    """Domain errors carry their own status code and user-facing message"""
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.error} ({exc.detail})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_input", "detail": message}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all: log the traceback, never send it to the client"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": "Internal server error"}
    )


# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
def root():
    """Basic health check"""
    return {
        "message": "CineAI API",
        "version": "1.0.0",
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
@app.get("/api/health", tags=["Health"])
def health_check():
    """Detailed health check for monitoring"""
    return {
        "status": "healthy",
        "api_version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "omdb": "configured" if settings.omdb_api_key else "not_configured",
            "groq": "configured" if settings.groq_api_key else "not_configured",
        }
    }


app.include_router(movies.router)
app.include_router(recommendations.router)
app.include_router(admin.router)  # Background jobs management

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
