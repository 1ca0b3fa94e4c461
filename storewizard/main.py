import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from storewizard.models.database import init_db
from storewizard.config import settings
from fastapi.middleware.cors import CORSMiddleware
from storewizard.api.router import router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db(settings.SQLITE_DB_PATH)
    yield


app = FastAPI(
    title="Store Setup Wizard",
    description="An AI-assisted setup wizard that configures a connected Zid store through chat.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.APP_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
