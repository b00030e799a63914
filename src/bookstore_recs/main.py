import logging

from fastapi import FastAPI

from bookstore_recs.api.routes.recommendations import router as recommendations_router
from bookstore_recs.config import settings
from bookstore_recs.logging_config import configure_logging
from bookstore_recs.middleware import RequestContextMiddleware

configure_logging(
    level=settings.log_level,
    output_format=settings.log_format,
    service_name=settings.log_service_name,
)
logger = logging.getLogger(__name__)
logger.info("Application bootstrapped")

app = FastAPI(
    title=settings.app_name,
    description=settings.app_description,
    version=settings.app_version,
)
app.add_middleware(RequestContextMiddleware)
app.include_router(recommendations_router)
