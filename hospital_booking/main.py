from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
import time
import logging

from .api.v1.auth import router as auth_router
from .api.v1.appointments import router as appointments_router
from .core.config import settings
from .core.database import init_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

async def _time_request(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.4f}s")
    return response

def _initialize_database() -> None:
    try:
        init_db()
    except SQLAlchemyError:
        logger.exception("Database initialization failed. Check DATABASE_URL.")
        raise
    logger.info("Booking database ready")

def create_app() -> FastAPI:
    """Build the booking API with its middleware, routers and startup hook."""
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Hospital appointment booking with slot availability and conflict checks",
        openapi_url="/api/v1/openapi.json",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.middleware("http")(_time_request)

    application.include_router(auth_router, prefix="/api/v1")
    application.include_router(appointments_router, prefix="/api/v1")
    application.add_event_handler("startup", _initialize_database)

    @application.get("/health")
    def health_check():
        return {"status": "healthy", "version": settings.VERSION}

    return application

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hospital_booking.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
