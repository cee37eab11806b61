"""
Loan Core API Application Factory
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from .users import router as users_router
from .loans import router as loans_router
from .payments import router as payments_router
from .cibil import router as cibil_router
from .admin import router as admin_router
from .. import __version__
from ..config import get_config
from ..errors import ConflictError, InvalidArgumentError, LoanCoreError, NotFoundError
from ..logging_config import get_logger, setup_logging


logger = get_logger("loan_core.api")


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    app = FastAPI(
        title="Loan Core API",
        description="Loan origination, underwriting, repayment tracking and admin reporting",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in config.cors_origins.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Domain errors map onto HTTP status codes
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
        logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
        return _error_response(400, exc)

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _error_response(409, exc)

    @app.exception_handler(LoanCoreError)
    async def loan_core_error_handler(request: Request, exc: LoanCoreError):
        logger.error(f"Unhandled domain error on {request.method} {request.url.path}: {exc}")
        return _error_response(500, exc)

    # Include routers
    app.include_router(users_router, prefix="/users", tags=["Users"])
    app.include_router(loans_router, prefix="/loans", tags=["Loans"])
    app.include_router(payments_router, prefix="/payments", tags=["Payments"])
    app.include_router(cibil_router, prefix="/cibil", tags=["CIBIL"])
    app.include_router(admin_router, prefix="/admin", tags=["Admin"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "loan_core_api",
            "version": __version__
        }

    return app


# Module-level app for uvicorn
app = create_app()


def run_server(host: str = None, port: int = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)
    uvicorn.run(
        "loan_core.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
