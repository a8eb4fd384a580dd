"""
Entry point for running the ToonVocab API server
Run: python run_server.py
"""
import sys
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Add src to path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

if __name__ == "__main__":
    import uvicorn
    from utils.config_loader import load_settings
    from utils.logging_setup import configure_logging

    settings = load_settings()
    configure_logging(settings.log_level)

    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
