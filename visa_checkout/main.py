import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from visa_checkout.config import settings
from visa_checkout.database import create_db_and_tables
from visa_checkout.errors import VisaCheckoutError
from visa_checkout.routes import (
    admin_contracts,
    admin_zelle,
    checkout,
    contracts,
    health,
    webhooks,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield


app = FastAPI(title="MIGMA Visa Checkout API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(request: Request, message: str) -> dict:
    # admin actions answer {success, error}; everything else just {error}
    if request.url.path.startswith("/admin"):
        return {"success": False, "error": message}
    return {"error": message}


@app.exception_handler(VisaCheckoutError)
async def visa_checkout_error_handler(request: Request, exc: VisaCheckoutError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        # loc starts with "body" / "query" / "header"
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=_error_body(request, message))


app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
app.include_router(admin_contracts.router, prefix="/admin/contracts", tags=["Admin Contracts"])
app.include_router(admin_zelle.router, prefix="/admin/zelle", tags=["Admin Zelle"])
app.include_router(contracts.router, prefix="/contracts", tags=["Contracts"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "checkout_endpoints": [
            "/checkout/visa/session", "/checkout/visa/zelle", "/checkout/visa/wise",
        ],
        "webhook_endpoints": ["/webhooks/wise", "/webhooks/stripe"],
        "admin_endpoints": [
            "/admin/contracts/approve", "/admin/contracts/reject",
            "/admin/zelle/approve", "/admin/zelle/reject",
        ],
        "contract_endpoints": ["/contracts/view", "/contracts/resubmit"],
    }
