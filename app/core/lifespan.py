from contextlib import asynccontextmanager
import logging

from app.billing import get_country_rules
from app.core.billing_store import close_billing_store, init_billing_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    rules = get_country_rules()
    logger.info("billing_startup countries=%d", len(rules.selectable_countries()))
    init_billing_store()
    yield
    close_billing_store()
