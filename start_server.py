"""Startup script for container deployment."""
import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8001))
    log_level = os.environ.get("LOG_LEVEL", "info").lower()
    print(f"Starting ArtGuessr on port {port}", flush=True)
    uvicorn.run(
        "backend.app:app",
        host="0.0.0.0",
        port=port,
        log_level=log_level,
        proxy_headers=True,
    )
