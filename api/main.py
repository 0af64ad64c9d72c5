from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from admin import router as admin_router
from auth import router as auth_router
from blogs import router as blogs_router
from core import db
from core.config import cors_origins
from core.errors import install_error_handlers
from core.log import configure_logging
from media import storage
from projects import router as projects_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    storage.ensure_upload_root()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

# Allow the portfolio frontends to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

app.include_router(auth_router.router, tags=["auth"])
app.include_router(projects_router.router, tags=["projects"])
app.include_router(blogs_router.router, tags=["blogs"])
app.include_router(admin_router.router, tags=["admin"])

# check_dir=False: the upload root is created in lifespan, after import.
app.mount(storage.URL_PREFIX, StaticFiles(directory=storage.upload_root(), check_dir=False), name="uploads")


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "portfolio api"}
