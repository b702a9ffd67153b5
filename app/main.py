import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.v1.onboarding import router as onboarding_router
from app.core.config import settings
from app.wiring.dependencies import get_backend

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("operation", "provider_id", "service_id", "category_id", "step", "status", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    backend = get_backend()
    aclose = getattr(backend, "aclose", None)
    if aclose is not None:
        await aclose()


app = FastAPI(title="Provider Onboarding", version="1.0.0", lifespan=lifespan)

app.include_router(onboarding_router, prefix="/api/v1/onboarding", tags=["onboarding"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
