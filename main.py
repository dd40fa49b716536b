import uvicorn
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from vidro_ai.api.analyze import router as analyze_router
from vidro_ai.api.insights import router as insights_router
from vidro_ai.core.config import AI_PROVIDER, CORS_ORIGINS, LOG_LEVEL
from vidro_ai.providers.factory import ProviderSelector
from vidro_ai.utils.logging_config import setup_logging

# Initialize enhanced logging
setup_logging(level=LOG_LEVEL)
logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Vidro AI starting with provider: {app.state.provider_selector.kind.value}")
    yield
    await app.state.provider_selector.close()


app = FastAPI(title="Vidro AI Pipeline API", lifespan=lifespan)

# The provider is built on first use so a missing key only affects AI routes
app.state.provider_selector = ProviderSelector(AI_PROVIDER)

# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Incoming: {request.method} {request.url.path} from {client_host}")

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"Outgoing: {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.2f}ms"
            )
            return response
        except Exception as e:
            logger.error(f"Request failed: {request.method} {request.url.path} - Error: {str(e)}")
            raise

app.add_middleware(LoggingMiddleware)

# ---------------------------------------------------------------------------
# CORS for the web client
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health endpoint
@app.get("/health")
async def health_check():
    return {"status": "ok", "provider": app.state.provider_selector.kind.value}

# Register routers
app.include_router(analyze_router)
app.include_router(insights_router)

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
