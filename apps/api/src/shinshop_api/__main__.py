import uvicorn

from shinshop_api.core.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "shinshop_api.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    main()
