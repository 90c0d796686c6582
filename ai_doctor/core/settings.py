import logging
import os

from dotenv import load_dotenv


_configured = False


def configure() -> None:
    """Load .env and set up logging once per process (Streamlit reruns call this often)."""
    global _configured
    if _configured:
        return
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _configured = True


def model_provider() -> str:
    return os.getenv("MODEL_PROVIDER", "stub").strip().lower()
