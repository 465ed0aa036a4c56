import uvicorn

from .config import settings


if __name__ == "__main__":
    uvicorn.run("order_service.main:app", host=settings.host, port=settings.port)
