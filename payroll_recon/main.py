from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from payroll_recon.core.config import settings
from payroll_recon.core.log import configure_logging
import payroll_recon.models  # noqa: F401  # force model registration

from payroll_recon.api.v1.payroll import router as payroll_router
from payroll_recon.api.v1.reference import router as reference_router
from payroll_recon.api.v1.users import router as users_router
from payroll_recon.api.v1.dashboard import router as dashboard_router


def create_application() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Payroll Reconciliation API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"status": "ok", "service": "payroll-recon", "environment": settings.ENVIRONMENT}

    # Routers
    app.include_router(payroll_router, prefix="/api/v1")
    app.include_router(reference_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(dashboard_router, prefix="/api/v1")

    return app


app = create_application()
