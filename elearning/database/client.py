"""Construction of the process-wide Supabase client."""

import logging

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from elearning.config.settings import Settings


logger = logging.getLogger(__name__)


async def create_supabase_client(settings: Settings) -> AsyncClient:
    """Create the single Supabase client owned by the application shell.

    The client is built once at process start and handed to every gateway by
    reference; nothing in the package holds a module-level client.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_PUBLISHABLE_KEY:
        error_msg = "Supabase configuration missing"
        raise ValueError(error_msg)

    options = AsyncClientOptions(
        auto_refresh_token=True,
        persist_session=True,
    )
    client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_PUBLISHABLE_KEY, options=options)
    logger.info(f"Supabase client created for {settings.SUPABASE_URL}")
    return client
