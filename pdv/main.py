"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pdv.config import get_settings
from pdv.infrastructure.database import engine, Base
from pdv.core.logging import configure_logging
from pdv.core.middleware import setup_middleware
from pdv.core.exceptions import AppError, global_exception_handler

# Import all models so SQLAlchemy knows about them
from pdv.domain.models.product import Product  # noqa: F401
from pdv.domain.models.purchase import Purchase  # noqa: F401
from pdv.domain.models.sale import Sale, SaleItem  # noqa: F401

# Import routers
from pdv.interfaces.api.products import router as products_router
from pdv.interfaces.api.purchases import router as purchases_router
from pdv.interfaces.api.sales import router as sales_router
from pdv.interfaces.api.sale_items import router as sale_items_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting PDV backend...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only, use migrations in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    logger.info("PDV backend stopped")


app = FastAPI(
    title="PDV — Vendas e Estoque",
    description="API Backend — produtos, compras, vendas e itens de venda",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging)
setup_middleware(app)

# Global Exception Handling
app.add_exception_handler(AppError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(products_router)
app.include_router(purchases_router)
app.include_router(sales_router)
app.include_router(sale_items_router)


@app.get("/")
def root():
    return {
        "name": "PDV Backend",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
