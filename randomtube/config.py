import os
from dotenv import load_dotenv

load_dotenv()

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))  # randomtube/
PROJECT_ROOT = os.path.dirname(PACKAGE_DIR)

class Settings:
    def __init__(self):
        # The only secret; API_KEY is accepted for older deployments
        self.YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY") or os.getenv("API_KEY", "")
        self.YOUTUBE_SEARCH_URL = os.getenv(
            "YOUTUBE_SEARCH_URL", "https://www.googleapis.com/youtube/v3/search"
        )

        # Upstream returns the latest N videos per channel, first page only
        self.MAX_RESULTS = int(os.getenv("MAX_RESULTS", "20"))
        self.CACHE_DURATION_MS = int(os.getenv("CACHE_DURATION_MS", str(24 * 3600 * 1000)))  # 1 day
        self.HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

        # "file" keeps records in a JSON file, "memory" forgets them on restart
        self.STORE_BACKEND = os.getenv("STORE_BACKEND", "file").lower()
        self.STORE_PATH = os.getenv("STORE_PATH", os.path.join(PROJECT_ROOT, "kv_store.json"))

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

settings = Settings()
