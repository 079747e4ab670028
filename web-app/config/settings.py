import os
from dotenv import load_dotenv

load_dotenv()

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", 3001))
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./assignwork.db")

# Runtime environment: "development", "production" or "test"
APP_ENV = os.getenv("APP_ENV", "development")
IS_PRODUCTION = APP_ENV == "production"

SERVICE_NAME = "AssignWork Service"
SERVICE_VERSION = "1.0.0"

# CORS origins allowed to call the API (comma separated)
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001").split(",")
    if origin.strip()
]

# Overrides the level inherited from uvicorn, e.g. "DEBUG"
LOG_LEVEL = os.getenv("LOG_LEVEL", "").upper() or None
