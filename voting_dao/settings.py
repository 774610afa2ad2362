from __future__ import annotations

import os


class Settings:
    # Node
    DATA_DIR: str = os.getenv("DAO_DATA_DIR", "data")
    HOST: str = os.getenv("DAO_HOST", "127.0.0.1")
    PORT: int = int(os.getenv("DAO_PORT", "8000"))

    # CLI tasks
    NODE_URL: str = os.getenv("DAO_NODE_URL", "http://127.0.0.1:8000")
    HTTP_TIMEOUT_SEC: float = float(os.getenv("DAO_HTTP_TIMEOUT_SEC", "10"))


settings = Settings()
