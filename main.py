import os
import logfire

from dotenv import load_dotenv

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from config import get_settings
from models.users import User
from routers import auth, users
from utils.logger import configure_logging


# Load environment variables first
load_dotenv()

# Configure logfire BEFORE creating FastAPI app
configure_logging(token=os.getenv("LOGFIRE_WRITE_TOKEN"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logfire.info("Starting VideoTube accounts API...")

    settings = get_settings()  # * Fails fast on missing or shared token secrets

    client = AsyncIOMotorClient(settings.database.connection_string)  # * Connect to MongoDB

    await init_beanie(
        database=client[settings.database.name],
        document_models=[User],
    )
    logfire.info("Database initialized successfully")

    yield

    logfire.info("Shutting down VideoTube accounts API...")
    client.close()
    logfire.info("Application shutdown complete")


app = FastAPI(
    title="VideoTube Accounts API",
    description="User registration, login with rotating refresh tokens, and profile management.",
    lifespan=lifespan,
)

cors_origins = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["127.0.0.1"])
app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(auth.router)
app.include_router(users.router)
