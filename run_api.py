#!/usr/bin/env python3
"""
Script to run the BookNest API server.
"""

import uvicorn

from booknest.config import BookNestConfig


def main():
    """Run the API server."""
    config = BookNestConfig()
    print("Starting BookNest API Server")
    print(f"Host: {config.host}")
    print(f"Port: {config.port}")
    print(f"Debug: {config.debug}")
    print(f"Storage: {config.storage_backend} ({config.mongodb_database})")
    print(f"Docs: http://{config.host}:{config.port}{config.docs_url}")
    print("=" * 50)

    uvicorn.run(
        "booknest.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
