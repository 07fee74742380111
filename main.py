from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from database import Base, engine

from routers.auth import auth_router
from routers.entries import entries_router

from models.user import User
from models.entry import Entry

from config import settings
from functions.errors import BackfillRequiredError, ValidationError, NotFoundError, StorageError

from starlette.responses import StreamingResponse, FileResponse
import logging
import logging.handlers
import time
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError



app = FastAPI(title="one-smile-api", version="1.0.0")
Base.metadata.create_all(bind=engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ Create logs directory
logs_dir = Path(settings.LOG_DIR)
logs_dir.mkdir(parents=True, exist_ok=True)

# ✅ Setup logging configuration inline
def setup_logging():
    """Setup comprehensive logging"""

    use_colors = settings.LOG_COLORS.lower() == "true"
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    # Custom formatter with colors
    class ColoredFormatter(logging.Formatter):
        COLORS = {
            'DEBUG': '\033[36m',    # Cyan
            'INFO': '\033[32m',     # Green
            'WARNING': '\033[33m',  # Yellow
            'ERROR': '\033[31m',    # Red
            'CRITICAL': '\033[35m', # Magenta
            'RESET': '\033[0m'      # Reset
        }

        def format(self, record):
            if use_colors and getattr(record, 'color', False):
                level_color = self.COLORS.get(record.levelname, '')
                reset_color = self.COLORS['RESET']
                original_levelname = record.levelname
                record.levelname = f"{level_color}{record.levelname}{reset_color}"
                formatted = super().format(record)
                record.levelname = original_levelname
                return formatted
            return super().format(record)

    # Create main logger
    logger = logging.getLogger("one_smile")
    logger.setLevel(level)
    logger.handlers.clear()

    # Console handler with colors
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_formatter = ColoredFormatter(
        fmt='%(asctime)s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)

    # Main log file handler with rotation
    file_handler = logging.handlers.RotatingFileHandler(
        filename=logs_dir / "api.log",
        maxBytes=settings.LOG_MAX_FILE_SIZE,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setLevel(level)
    file_formatter = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(file_formatter)

    # Error log file handler
    error_handler = logging.handlers.RotatingFileHandler(
        filename=logs_dir / "errors.log",
        maxBytes=settings.LOG_MAX_FILE_SIZE // 2,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(file_formatter)

    # Add handlers
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
    logger.addHandler(error_handler)
    logger.propagate = False

    return logger

# ✅ Initialize logger
logger = setup_logging()

# ✅ Helper functions
SENSITIVE_FIELDS = {'password', 'token', 'secret', 'authorization'}

def mask_sensitive_data(data):
    """Mask sensitive fields in log data"""
    if not isinstance(data, dict):
        return data

    masked_data = data.copy()

    for key, value in masked_data.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS):
            masked_data[key] = "***MASKED***"
        elif isinstance(value, dict):
            masked_data[key] = mask_sensitive_data(value)

    return masked_data

def format_json_for_log(data, max_length=1000):
    """Format data as JSON for logging"""
    try:
        if isinstance(data, dict):
            data = mask_sensitive_data(data)

        json_str = json.dumps(data, indent=2, ensure_ascii=False, default=str)

        if len(json_str) > max_length:
            return json_str[:max_length] + "... [truncated]"

        return json_str
    except (TypeError, ValueError):
        return str(data)


def _safe_content_length(resp) -> str:
    cl = resp.headers.get("content-length")
    if cl is not None:
        return cl
    if isinstance(resp, (StreamingResponse, FileResponse)):
        return "streaming"
    return "unknown"

SAFE_BODY_LOG_BYTES = 64_000  # 64KB cap to avoid huge logs

def _is_json(content_type: Optional[str]) -> bool:
    return bool(content_type and content_type.split(";")[0].strip().lower() == "application/json")

# ✅ Request logging middleware
@app.middleware("http")
async def comprehensive_logging_middleware(request: Request, call_next):
    request_id = f"req_{int(time.time() * 1000)}"
    start_time = time.time()

    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"🔵 [{request_id}] {request.method} {request.url.path} | Client: {client_ip}", extra={"color": True})

    if request.query_params:
        logger.info(f"🔍 [{request_id}] Query: {dict(request.query_params)}", extra={"color": True})

    content_type = request.headers.get("content-type", "")
    if _is_json(content_type):
        raw = await request.body()  # Starlette caches this, downstream can still read
        if len(raw) > SAFE_BODY_LOG_BYTES:
            logger.info(f"📄 [{request_id}] Body: <{len(raw)} bytes: skipped (too large)>", extra={"color": True})
        elif raw:
            try:
                parsed = json.loads(raw.decode("utf-8"))
                logger.info(f"📄 [{request_id}] Body (JSON):\n{format_json_for_log(parsed)}", extra={"color": True})
            except (UnicodeDecodeError, ValueError):
                logger.info(f"📄 [{request_id}] Body: <{len(raw)} bytes: not valid JSON>", extra={"color": True})

    # Masked auth header
    if request.headers.get("authorization"):
        logger.info(f"🔑 [{request_id}] Auth: Bearer ***", extra={"color": True})

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"💥 [{request_id}] EXCEPTION: {request.method} {request.url.path} | Error: {str(e)} | Time: {process_time:.3f}s",
            exc_info=True,
            extra={"color": True},
        )
        raise

    process_time = time.time() - start_time
    emoji = "✅" if response.status_code < 300 else "🔄" if response.status_code < 400 else "⚠️" if response.status_code < 500 else "❌"
    logger.info(
        f"{emoji} [{request_id}] {response.status_code} | "
        f"{process_time:.3f}s | {_safe_content_length(response)} bytes",
        extra={"color": True},
    )

    if process_time > 1.0:
        logger.warning(f"🐌 [{request_id}] SLOW REQUEST: {process_time:.3f}s for {request.method} {request.url.path}", extra={"color": True})

    return response

# ✅ Exception handlers
@app.exception_handler(BackfillRequiredError)
async def backfill_exception_handler(request: Request, exc: BackfillRequiredError):
    logger.info(f"⏪ BACKFILL REQUIRED: {request.method} {request.url.path} - {exc.message}", extra={'color': True})
    return JSONResponse(
        status_code=400,
        content={
            "detail": exc.message,
            "oldest_missed_date": exc.oldest_missed_date.isoformat()
        }
    )

@app.exception_handler(ValidationError)
async def entry_validation_exception_handler(request: Request, exc: ValidationError):
    logger.warning(f"🔴 INVALID INPUT: {request.method} {request.url.path} - {exc.message}", extra={'color': True})
    return JSONResponse(status_code=400, content={"detail": exc.message})

@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})

@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    # Cause was already logged where it happened; keep internals out of the response
    logger.error(f"💥 STORAGE ERROR: {request.method} {request.url.path} - {exc.message}", extra={'color': True})
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": "Could not reach storage, please retry"
        }
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error_details = exc.errors()

    logger.error(
        f"🔴 VALIDATION ERROR: {request.method} {request.url.path}",
        extra={'color': True}
    )
    logger.error(f"🔴 Details: {format_json_for_log(error_details)}")

    return JSONResponse(
        status_code=422,
        content={
            "detail": json.loads(json.dumps(error_details, default=str)),
            "message": "Request validation failed"
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"💥 UNHANDLED EXCEPTION: {request.method} {request.url.path} - {str(exc)}",
        exc_info=True,
        extra={'color': True}
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": "An unexpected error occurred"
        }
    )

# ✅ Application lifecycle events
@app.on_event("startup")
async def startup_event():
    logger.info("🚀 ONE SMILE API Starting up...", extra={'color': True})
    logger.info(f"📁 Logs directory: {logs_dir.absolute()}", extra={'color': True})
    logger.info(f"🌍 Environment: {settings.ENVIRONMENT}", extra={'color': True})
    logger.info("✅ ONE SMILE API Started successfully!", extra={'color': True})

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("🛑 ONE SMILE API Shutting down...", extra={'color': True})
    logger.info("✅ ONE SMILE API Stopped successfully!", extra={'color': True})

# ✅ Include routers
app.include_router(auth_router)
app.include_router(entries_router)

# ✅ Health check endpoint
@app.get("/health")
async def health_check():
    logger.info("💓 Health check requested", extra={'color': True})
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "message": "ONE SMILE API is running",
        "version": "1.0.0"
    }

# ✅ Root endpoint
@app.get("/")
async def root():
    return {
        "message": "Welcome to ONE SMILE API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
