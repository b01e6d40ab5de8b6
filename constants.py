import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000,http://localhost:3001"
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if origin.strip()]

# Default room capacity, applied to rooms as they are created
MAX_PARTICIPANTS = max(1, int(os.getenv("MAX_PARTICIPANTS", 25)))

DEFAULT_SENDER_NAME = "Unknown"
