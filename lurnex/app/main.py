# Lurnex LMS backend entrypoint: FastAPI app, routers and error rendering.

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lurnex.app.api import admin_batches
from lurnex.app.api import admin_classes
from lurnex.app.api import admin_dashboard
from lurnex.app.api import admin_students
from lurnex.app.api import admin_trainers
from lurnex.app.api import assessments
from lurnex.app.api import auth
from lurnex.app.api import classes
from lurnex.app.api import mis
from lurnex.app.api import users
from lurnex.app.core.dev_seed import ensure_default_admin
from lurnex.app.core.errors import LurnexError
from lurnex.app.core.settings import get_settings
from lurnex.app.db.base import Base
from lurnex.app.db.session import SessionLocal, engine

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

settings = get_settings()
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name, version=settings.api_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(admin_dashboard.router)
app.include_router(admin_students.router)
app.include_router(admin_trainers.router)
app.include_router(admin_batches.router)
app.include_router(admin_classes.router)
app.include_router(mis.router)
app.include_router(classes.router)
app.include_router(assessments.router)


@app.exception_handler(LurnexError)
async def handle_domain_error(request: Request, exc: LurnexError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, **exc.extra})


@app.get("/")
def read_root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def seed_default_admin():
    db = SessionLocal()
    try:
        ensure_default_admin(db)
    finally:
        db.close()
