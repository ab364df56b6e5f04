import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from skyscout.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "skyscout.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from skyscout.routers import search
from skyscout.services.flight_advisor import FlightAdvisor
from skyscout.services.flight_search_service import FlightSearchService, SearchConfig
from skyscout.services.kiwi_client import KiwiClient
from skyscout.services.smart_search import SmartSearchService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup — one configured service graph per application
    kiwi_client = KiwiClient()
    flight_search = FlightSearchService(SearchConfig(search_fn=kiwi_client.search))
    app.state.flight_search = flight_search
    app.state.smart_search = SmartSearchService(flight_search, FlightAdvisor())
    logger.info(
        f"Flight search configured: provider={settings.kiwi_mcp_url} "
        f"max_concurrency={settings.max_concurrent_searches or 'unbounded'}"
    )

    yield

    # Shutdown
    await kiwi_client.close()
    logger.info("Kiwi client closed")


app = FastAPI(
    title="SkyScout",
    description="Multi-airport flight search with AI recommendations",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(search.router, prefix="/api/search", tags=["search"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "skyscout"}
