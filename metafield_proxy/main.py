from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from metafield_proxy.core.config import Settings, get_settings
from metafield_proxy.core.exceptions import ProxyError
from metafield_proxy.core.security import cors_headers
from metafield_proxy.api.endpoints import health, metafields, storefront
from typing import Optional
import logging
import time

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

HTTP_ERROR_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


def unexpected_error_response(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Unexpected error",
            "details": str(exc) if request.app.state.settings.debug else "An unexpected error occurred"
        }
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the proxy app around one settings object."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Read-only proxy for BigCommerce variant metafields",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc"
    )
    app.state.settings = settings

    # Allow-listed CORS; OPTIONS is always answered as a preflight
    @app.middleware("http")
    async def cors_allow_list(request: Request, call_next):
        headers = cors_headers(request.headers.get("origin"), request.app.state.settings)
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers)
        try:
            response = await call_next(request)
        except Exception as exc:
            response = unexpected_error_response(request, exc)
        response.headers.update(headers)
        return response

    # Add request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        # Log request
        logger.info(f"Request: {request.method} {request.url.path}")
        # Process request
        response = await call_next(request)
        # Log response
        process_time = time.time() - start_time
        logger.info(f"Response: {response.status_code} - {process_time:.4f}s")
        return response

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError):
        if exc.status_code >= 500:
            logger.error(f"{request.url.path} failed: {exc.status_code} {exc.error}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        return unexpected_error_response(request, exc)

    # Include routers
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(metafields.router, prefix="/api", tags=["metafields"])
    app.include_router(storefront.router, prefix="/api", tags=["storefront"])

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "status": "running",
            "docs_url": "/api/docs",
            "health_check": "/api/health"
        }

    logger.info(f"Configured {settings.app_name} v{settings.version} (debug={settings.debug}, "
                f"diagnostics={settings.enable_diagnostics})")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    _settings = get_settings()
    uvicorn.run(
        "metafield_proxy.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.debug,
        log_level="info"
    )
