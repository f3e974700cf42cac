import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging import setup_logging
from app.api.v1.api import api_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

# CORS_ORIGINS is comma-separated; empty means the local storefront dev server
_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] or [
    "http://127.0.0.1:3000", "http://localhost:3000",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # storefront clients expect the {success, message} envelope and a 400
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = f"Invalid {field}: {first.get('msg')}" if field else "Invalid request"
    logger.info("rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"success": False, "message": message})


app.include_router(api_router)


@app.get("/health")
def health():
    return {"status": "ok"}
