from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

load_dotenv(ROOT / ".env")

from retrieval.app import create_app
from retrieval.config import RetrievalConfig
from retrieval.logging_config import setup_logging
import uvicorn


config = RetrievalConfig.from_env()
setup_logging(config.log_level)
app = create_app(config)

uvicorn.run(app, host=config.host, port=config.port)
