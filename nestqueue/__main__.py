import uvicorn

from nestqueue.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("nestqueue.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
