"""Entry point: start the ListCloner server."""

import uvicorn


if __name__ == "__main__":
    from listcloner.config import settings
    host = settings.host
    port = settings.port

    print("=" * 60)
    print("  ListCloner")
    print("=" * 60)
    print(f"  Local:    http://localhost:{port}")
    print(f"  API Docs: http://localhost:{port}/docs")
    print(f"  AT Protocol service: {settings.atproto_service_url}")
    print("=" * 60)

    uvicorn.run(
        "listcloner.main:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level="info",
    )
