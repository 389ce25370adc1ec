import logging
from supabase import create_client, Client
from app.core.config import settings, Settings, mask_secret

logger = logging.getLogger(__name__)


def get_supabase_client(config: Settings = settings) -> Client:
    """Create a Supabase client (database + storage) from `config`.

    Built once at startup and shared by every submission. Raises a clear
    RuntimeError if required configuration is missing.
    """
    supabase_url = config.SUPABASE_URL
    supabase_key = config.supabase_key

    if not supabase_url:
        raise RuntimeError("Supabase configuration missing: set SUPABASE_URL environment variable")

    if not supabase_key:
        raise RuntimeError(
            "Supabase configuration missing: set SUPABASE_SERVICE_ROLE or SUPABASE_ANON_PUBLIC environment variable"
        )

    host = supabase_url.split("://")[-1].split("/")[0]
    logger.debug(f"Using Supabase host: {host} and key: {mask_secret(supabase_key)}")

    return create_client(supabase_url, supabase_key)
