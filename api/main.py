import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core import db
from hierarchy import router as hierarchy_router

DEFAULT_FRONTEND_ORIGIN = "http://localhost:3000"


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


def frontend_origins() -> list[str]:
    raw = os.environ.get("FRONTEND_ORIGIN", "").strip() or DEFAULT_FRONTEND_ORIGIN
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(title="org-rollup api", lifespan=lifespan)

# Allow the dashboard frontend to call this API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=frontend_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[hierarchy_router.DROPPED_HEADER],
)

app.include_router(hierarchy_router.router, tags=["hierarchy"])


@app.get("/health")
@app.get("/healthz")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "org-rollup api"}
