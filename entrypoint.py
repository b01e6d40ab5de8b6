import uvicorn
from constants import ENVIRONMENT, HOST, LOG_FILE, LOG_LEVEL, PORT
from logging_config import setup_logging

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

from app import app
from logging_config import get_logger

logger = get_logger(__name__)


def main():
    reload = ENVIRONMENT == "development"
    logger.info(f"Starting EphemeralMeet signaling server on {HOST}:{PORT} (reload={reload})")
    if reload:
        uvicorn.run("app:app", host=HOST, port=PORT, reload=True)
    else:
        uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
