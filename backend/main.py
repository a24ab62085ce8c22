import os

from dotenv import load_dotenv

# Read .env before eventbook builds its settings and engine
load_dotenv()

from fastapi.openapi.utils import get_openapi  # noqa: E402
from eventbook.main import app  # noqa: E402


def custom_openapi() -> dict:
    """Return OpenAPI schema with project metadata."""
    if app.openapi_schema:
        return app.openapi_schema
    app.openapi_schema = get_openapi(
        title="Event Booking API",
        version="0.1.0",
        description="Booking requests, service agreements and signatures for event vendors.",
        routes=app.routes,
    )
    return app.openapi_schema


app.openapi = custom_openapi

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "eventbook.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("UVICORN_RELOAD", "0") == "1",
        workers=int(os.getenv("UVICORN_WORKERS", "1")),
        timeout_keep_alive=int(os.getenv("UVICORN_KEEPALIVE", "65")),
    )
