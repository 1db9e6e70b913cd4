# backend/robot_booking/main.py
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import ADMIN_EMAIL, ADMIN_PASSWORD, CORS_ORIGINS, LOG_LEVEL, UPLOAD_ROOT
from .db import init_db
from .errors import ServiceError
from .routes import account, admin_users, bookings, documents, robots
from .users import seed_admin

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---- app instance ----
app = FastAPI(title="Robot Booking API")

def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version="1.0.0",
        description="Weekly robot bookings, robots, documents and accounts",
        routes=app.routes,
    )
    # add bearer security
    openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})
    openapi_schema["components"]["securitySchemes"]["bearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT"
    }
    openapi_schema["security"] = [{"bearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- error translation ----
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "reason": exc.reason})

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Ett internt fel uppstod"})

# ---- routers ----
app.include_router(account.router)
app.include_router(admin_users.router)
app.include_router(bookings.router)
app.include_router(robots.router)
app.include_router(documents.router)

os.makedirs(UPLOAD_ROOT, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_ROOT), name="uploads")

# create tables and the default admin on startup
@app.on_event("startup")
def on_startup():
    init_db(seed=lambda session: seed_admin(session, ADMIN_EMAIL, ADMIN_PASSWORD))
    logger.info("Robot booking backend ready")

# ---- simple endpoints ----
@app.get("/api/health")
def health():
    return {"status": "ok"}

@app.get("/")
def root():
    return {"msg": "Robot booking backend up. Visit /docs for API docs."}
