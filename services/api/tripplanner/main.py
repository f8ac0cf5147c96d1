# Trip Planner API Main Entry Point
import logging
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .settings import settings
from .services.errors import SlotError, NotFound, InvalidArgument, ConstraintViolation
from .routers.ready import router as ready_router
from .routers.trips import router as trips_router
from .routers.restaurants import router as restaurants_router
from .routers.availability import router as availability_router

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("tripplanner")

# Rate limiter (per-IP)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)

app = FastAPI(title="Trip Planner API", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SLOT_ERROR_STATUS = {
    NotFound: 404,
    InvalidArgument: 400,
    ConstraintViolation: 409,
}


@app.exception_handler(SlotError)
async def slot_error_handler(request: Request, exc: SlotError):
    status = SLOT_ERROR_STATUS.get(type(exc), 400)
    logger.info(f"{request.method} {request.url.path} -> {status}: {exc}")
    return JSONResponse(status_code=status, content={"detail": str(exc)})


app.include_router(ready_router, prefix="/api", tags=["ready"])
app.include_router(restaurants_router, prefix="/api")
app.include_router(trips_router, prefix="/api")
app.include_router(availability_router, prefix="/api")
