import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from social_events.api.routers import events, users
from social_events.core.config import get_settings
from social_events.core.logging_config import setup_logging
from social_events.services.database_service import MongoDBService

# --- Application Setup ---
setup_logging()  # Initialize logging first
settings = get_settings()
app = FastAPI(
    title="Social Events API",
    description="Create, browse and join community events; manage user accounts.",
    version="1.0.0",
)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception Handlers ---
# Every error leaves the service as {"message": ...} with its status code.
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(PyMongoError)
async def database_exception_handler(request: Request, exc: PyMongoError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Database error"},
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )

# --- Routers ---
app.include_router(events.router, tags=["Events"])
app.include_router(users.router, prefix="/users", tags=["Users"])

# --- Root Endpoint ---
@app.get("/", tags=["Root"], summary="API Root")
async def read_root():
    """A welcome message to verify the API is running."""
    return {"message": "Social Events server is running"}

# --- Lifecycle Events ---
@app.on_event("startup")
async def startup_event():
    logger.info("--- Starting FastAPI application ---")
    logger.info(f"Log level set to: {settings.LOG_LEVEL}")
    app.state.db_service = MongoDBService.from_settings(settings)
    logger.info("Application startup complete.")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("--- Shutting down FastAPI application ---")
    db_service = getattr(app.state, "db_service", None)
    if db_service is not None:
        db_service.close()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
