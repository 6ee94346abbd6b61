import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hocr_api.core.config import get_settings
from hocr_api.core.providers import reset_providers
from hocr_api.endpoints import highlight

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Close HTTP clients held by the provider singletons
    await reset_providers()


app = FastAPI(
    title="HOCR Highlight API",
    version="0.1.0",
    description="Maps highlighted full-text search snippets onto word bounding boxes of scanned pages.",
    lifespan=lifespan,
)

cors_origins = get_settings().cors_origins.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in cors_origins if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(highlight.router)


@app.get("/healthz")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
