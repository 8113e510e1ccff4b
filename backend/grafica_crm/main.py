import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from grafica_crm.core.config import Settings
from grafica_crm.core.database import build_engine, build_session_factory, init_db
from grafica_crm.core.errors import register_exception_handlers
from grafica_crm.core.logging_config import configure_logging
from grafica_crm.routes.health import router as health_router
from grafica_crm.routes.customers import router as customers_router
from grafica_crm.routes.orders import router as orders_router
from grafica_crm.routes.stats import router as stats_router
from grafica_crm.routes.billing import router as billing_router


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(title="Gráfica CRM API", version="0.1.0")

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    init_db(engine, settings)

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(customers_router, prefix="/api/customers", tags=["customers"])
    app.include_router(orders_router, prefix="/api/orders", tags=["orders"])
    app.include_router(stats_router, prefix="/api/stats", tags=["stats"])
    app.include_router(billing_router, prefix="/api/billing", tags=["billing"])

    logger.info("App created env=%s", settings.env)
    return app
