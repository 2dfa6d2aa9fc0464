# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from app.config import CORS_ORIGINS, LOG_LEVEL
from app.database.connection import init_db
from app.errors import ElectionError, SimulationError, StoreFailure
from app.routes.candidate_routes import router as candidate_router
from app.routes.election_routes import router as election_router
from app.routes.metrics_routes import router as metrics_router
from app.routes.news_routes import router as news_router
from app.routes.vote_routes import vote_router

# ==============================================================================
# SECTION 1: LOGGING
# ==============================================================================
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)
logger = logging.getLogger(__name__)


# ==============================================================================
# SECTION 2: STARTUP
# ==============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Connecting to Database...")
    await init_db()
    yield


# ==============================================================================
# SECTION 3: FASTAPI APPLICATION
# ==============================================================================
app = FastAPI(title="Election Demo API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ElectionError)
async def election_error_handler(request: Request, exc: ElectionError):
    if isinstance(exc, StoreFailure):
        # Details were logged where the failure happened
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        if isinstance(exc, SimulationError):
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.public_message, "stage": exc.stage},
            )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


app.include_router(candidate_router)
app.include_router(vote_router)
app.include_router(election_router)
app.include_router(news_router)
app.include_router(metrics_router)


# --- General Endpoints ---

@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the Election Demo API"}


@app.get("/health", tags=["Root"])
async def health_check():
    return {"status": "healthy", "database": "MongoDB"}


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)
