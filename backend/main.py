import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

_project_root = Path(__file__).resolve().parents[1]
if str(_project_root) not in sys.path:
    sys.path.append(str(_project_root))

from backend.app.entitlements import StorageFailure  # noqa: E402
from backend.app.feature_gates import FeatureGateError  # noqa: E402
from backend.app.routes.subscriptions import router as subscriptions_router  # noqa: E402
from backend.app.services.subscriptions import get_entitlement_engine  # noqa: E402


load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("entitlements")


app = FastAPI(title="Location Discovery Subscriptions API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(subscriptions_router)


@app.on_event("startup")
def _warm_entitlement_engine() -> None:
    get_entitlement_engine()
    logger.info("Entitlement engine ready")


@app.exception_handler(FeatureGateError)
async def _feature_gate_error_handler(request: Request, exc: FeatureGateError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=dict(exc.payload))


@app.exception_handler(StorageFailure)
async def _storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
    logger.error("Subscription storage unavailable path=%s error=%s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": exc.code, "message": "Subscription storage is unavailable."},
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}
