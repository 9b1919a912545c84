import uvicorn

from marquee.core.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "marquee.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
