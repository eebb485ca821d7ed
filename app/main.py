import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from scalar_fastapi import get_scalar_api_reference

from app.api.v1.router import v1_router
from app.services.supabase_client import is_configured

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# OpenAPI tag metadata: grouping & descriptions in Scalar
# ---------------------------------------------------------------------------
TAG_METADATA = [
    {
        "name": "scrape",
        "description": "Image extraction: collect every image a page references, collapse "
        "resolution variants of the same image and resolve size, dimensions and quality. "
        "Requires login; one credit per non-empty result.",
    },
    {
        "name": "download",
        "description": "Image proxy that returns a single image as a file attachment.",
    },
    {
        "name": "health",
        "description": "Liveness probe and configuration status.",
    },
]


def _validate_startup() -> dict[str, str]:
    """Validate critical configuration at startup. Returns issues dict."""
    issues: dict[str, str] = {}

    if is_configured():
        logger.info("Startup check: Supabase configuration OK")
    else:
        issues["supabase"] = "SUPABASE_URL / key not set"
        logger.warning(
            "Startup check: Supabase not configured (scrape requests will fail auth)"
        )

    return issues


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 60)
    logger.info("  ImageGrabber API starting")
    logger.info("=" * 60)

    startup_issues = _validate_startup()
    if startup_issues:
        logger.warning("Startup completed with issues: %s", list(startup_issues))
    else:
        logger.info("Application startup complete, all checks passed")

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    title="ImageGrabber API",
    summary="Extract, deduplicate and inspect images from any web page",
    description=(
        "## Overview\n\n"
        "ImageGrabber fetches a page's static HTML and finds every image it references: "
        "`<img>` and lazy-load attributes, `srcset` lists, `<picture>` sources, inline "
        "`background-image` styles and JSON-LD structured data.\n\n"
        "Resolution variants of one image (`-300x300`, `_150`, `?w=640`, cache-busting "
        "parameters) collapse to a single entry. Each image carries its byte size, MIME "
        "type, pixel dimensions (JPEG/PNG) and a quality tier.\n\n"
        "## Stack\n\n"
        "FastAPI + httpx + BeautifulSoup4 (lxml) + Supabase"
    ),
    version="0.1.0",
    openapi_tags=TAG_METADATA,
    lifespan=lifespan,
    # Keep Swagger UI and serve Scalar at /docs
    docs_url="/swagger",
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router)


@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": "ImageGrabber API",
        "version": "0.1.0",
        "docs": "/docs",
        "swagger": "/swagger",
        "openapi": "/openapi.json",
    }


@app.get("/docs", include_in_schema=False)
async def scalar_html():
    return get_scalar_api_reference(
        openapi_url=app.openapi_url,
        title=app.title,
    )
