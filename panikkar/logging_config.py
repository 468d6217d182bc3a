# panikkar/logging_config.py
import logging
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler
from panikkar.core.config import get_settings

LOG_LEVEL = get_settings().LOG_LEVEL    # INFO in production

LOGS_DIR = Path(__file__).parent.parent / "logs"
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILE = LOGS_DIR / "bot.log"

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(),                                 # console
        TimedRotatingFileHandler(LOG_FILE, when="midnight", interval=1, backupCount=30, encoding='utf-8'),  # daily rotation, 30 days kept
    ],
    force=True,    # overrides whatever uvicorn configured
)

# httpx logs every request at INFO; our clients already log them at DEBUG
logging.getLogger("httpx").setLevel(logging.WARNING)
