import uvicorn
import logging

from command_binder.app import app
from command_binder.core.config import Config

# Configure logging
logging.basicConfig(
    level=Config.LOG_LEVEL.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
    ]
)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    Config.validate()
    uvicorn.run(app, host="0.0.0.0", port=8080)
