import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from episteme.consts import VERSION
from episteme.domain.errors import EpistemeError
from episteme.interface.schemas import (
    ClassifyRequest,
    ClassifyResponse,
    PreviewRequest,
    PreviewResponse,
    QueueRequest,
    QueueResponse,
    SimulateRequest,
    SimulateResponse,
)

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("episteme.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Episteme Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Episteme Server shutting down...")


app = FastAPI(
    title="Episteme Server",
    description="Scheduling queries and FSRS what-if simulations for the Episteme plugin.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/simulate", response_model=SimulateResponse)
def simulate(req: SimulateRequest):
    """
    Run what-if rating sequences through FSRS.

    Malformed sequences are dropped and listed under `discarded`; an empty
    result is "no data", not an error.
    """
    from episteme.application.config import resolve_config
    from episteme.interface.schemas import handle_simulate

    try:
        config = resolve_config()
        return handle_simulate(config, req)
    except EpistemeError as e:
        logger.warning(f"Simulation rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Simulation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.post("/cards/classify", response_model=ClassifyResponse)
def classify(req: ClassifyRequest):
    """Due-ness, availability and maturity for the given card records."""
    from episteme.application.config import resolve_config
    from episteme.application.factory import get_classifier
    from episteme.interface.schemas import classify_cards

    now = req.now or datetime.now().astimezone()

    try:
        config = resolve_config()
        return classify_cards(get_classifier(config), [c.to_card() for c in req.cards], now)
    except EpistemeError as e:
        logger.warning(f"Classification rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Classification failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.post("/cards/queue", response_model=QueueResponse)
def queue(req: QueueRequest):
    """
    Today's study order: due learning, then reviews and new cards within the
    daily budgets, then learning cards due later today.
    """
    from episteme.application.config import resolve_config
    from episteme.interface.schemas import handle_queue

    now = req.now or datetime.now().astimezone()

    try:
        config = resolve_config()
        return handle_queue(config, req, now)
    except EpistemeError as e:
        logger.warning(f"Queue rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Queue build failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.post("/cards/preview", response_model=PreviewResponse)
def preview(req: PreviewRequest):
    """Next due date and interval label for each answer button."""
    from episteme.application.config import resolve_config
    from episteme.interface.schemas import handle_preview

    now = req.now or datetime.now().astimezone()

    try:
        config = resolve_config()
        return handle_preview(config, req, now)
    except EpistemeError as e:
        logger.warning(f"Preview rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Preview failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e
