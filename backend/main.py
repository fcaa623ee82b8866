from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse
import logging
import os
import time

from routers import analyze, bills, export, history, settings
from services.history_service import UPLOADS_DIR
from services.settings_service import is_configured, load_settings

# ── Logging setup ─────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Quiet noisy libraries unless we're in DEBUG
if LOG_LEVEL != "DEBUG":
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)

logger = logging.getLogger("billsight")

VERSION = "0.1.0"
DATA_DIR = os.environ.get("DATA_DIR", "/data")

app = FastAPI(
    title="Billsight — Utility Bill Analyzer",
    description="Extract, review and export utility bill data with AI vision",
    version=VERSION,
)

_cors_origins = os.environ.get("CORS_ORIGINS", "").strip()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins.split(",") if _cors_origins else ["*"],
    allow_credentials=bool(_cors_origins),  # only send credentials when origins are explicit
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analyze.router,  prefix="/api/analyze",  tags=["analyze"])
app.include_router(bills.router,    prefix="/api/bills",    tags=["bills"])
app.include_router(export.router,   prefix="/api/export",   tags=["export"])
app.include_router(history.router,  prefix="/api/history",  tags=["history"])
app.include_router(settings.router, prefix="/api/settings", tags=["settings"])

# Stored bill images (created on startup if missing)
app.mount("/uploads", StaticFiles(directory=UPLOADS_DIR, check_dir=False), name="uploads")

# Serve frontend static files
FRONTEND_DIR = "/app/frontend"
if os.path.exists(FRONTEND_DIR):
    app.mount("/assets", StaticFiles(directory=f"{FRONTEND_DIR}/assets"), name="assets")

    @app.get("/", include_in_schema=False)
    async def serve_frontend():
        return FileResponse(f"{FRONTEND_DIR}/index.html")

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    elapsed = (time.time() - start) * 1000
    if LOG_LEVEL == "DEBUG" or response.status_code >= 400:
        logger.log(
            logging.WARNING if response.status_code >= 400 else logging.DEBUG,
            "%s %s → %s (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
        )
    return response

@app.on_event("startup")
async def on_startup():
    os.makedirs(UPLOADS_DIR, exist_ok=True)
    current = load_settings()
    logger.info("Starting Billsight v%s  LOG_LEVEL=%s  DATA_DIR=%s  provider=%s%s",
                VERSION, LOG_LEVEL, DATA_DIR, current.provider.value,
                "" if is_configured(current) else " (not configured)")

@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION}


@app.get("/api/diagnose")
async def diagnose():
    """Check that dependencies, storage and provider settings are usable."""
    results = {}

    # Pillow (thumbnails)
    try:
        from PIL import Image
        results["pillow"] = {"ok": True}
    except ImportError as e:
        results["pillow"] = {"ok": False, "error": str(e)}

    # google-genai (Gemini provider)
    try:
        from google import genai
        results["google_genai"] = {"ok": True}
    except ImportError as e:
        results["google_genai"] = {"ok": False, "error": str(e)}

    # Data dir
    results["data_dir"] = {
        "ok": os.path.isdir(DATA_DIR) and os.access(DATA_DIR, os.W_OK),
        "path": DATA_DIR,
        "uploads_dir": UPLOADS_DIR,
    }

    # Provider settings: report presence only, never key material
    current = load_settings()
    results["provider"] = {
        "ok": is_configured(current),
        "provider": current.provider.value,
    }

    return {"all_ok": all(v.get("ok") for v in results.values()), "checks": results}
