# Application entrypoint: configures middleware, startup routines, API routers and static mounts.
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import os

from . import __version__
from .db import Base, DATABASE_URL, engine
from .routes.properties import router as properties_router
from .routes.users import router as users_router
from .schemas import HealthRead
from .storage import UPLOAD_DIR, UPLOAD_URL_PREFIX

SERVICE_NAME = "propfinder"

# Frontend bundle (index.html, app.js, style.css)
STATIC_DIR = os.getenv("STATIC_DIR", "./static")


# Parse CORS origins from a comma-separated env var.
# '*' cannot be combined with allow_credentials=True; fall back to explicit localhost origins.
def _parse_cors_origins(env_value: str | None) -> list[str]:
    default_dev_origins = [
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    if not env_value:
        return default_dev_origins

    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    if "*" in origins:
        return default_dev_origins

    return origins


app = FastAPI(title="Property Finder API", version=__version__)
allow_list = _parse_cors_origins(os.getenv("CORS_ORIGINS"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)


@app.on_event("startup")
def on_startup() -> None:
    # For local SQLite, auto-create tables; other databases rely on Alembic migrations.
    if DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    os.makedirs(UPLOAD_DIR, exist_ok=True)


@app.get("/api/health", response_model=HealthRead)
def health() -> HealthRead:
    return HealthRead(status="healthy", service=SERVICE_NAME, version=__version__)


app.include_router(users_router, prefix="/api", tags=["users"])
app.include_router(properties_router, prefix="/api", tags=["properties"])

# Stored media; the directory is created on startup, so skip the mount-time existence check
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")

# Frontend last: a "/" mount matches every path not claimed by the routes above
if os.path.isdir(STATIC_DIR):
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
