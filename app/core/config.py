import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "Blockey Formularios API"
    SUPABASE_URL: str = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE: str = os.getenv("SUPABASE_SERVICE_ROLE")
    SUPABASE_ANON_PUBLIC: str = os.getenv("SUPABASE_ANON_PUBLIC")
    SENDGRID_API_KEY: str = os.getenv("SENDGRID_API_KEY")
    EMAIL_FROM_ADDRESS: str = os.getenv("EMAIL_FROM_ADDRESS", "info@blockey.tech")
    EMAIL_FROM_NAME: str = os.getenv("EMAIL_FROM_NAME", "Administración Blockey")
    EMAIL_SUBJECT: str = os.getenv(
        "EMAIL_SUBJECT", "Gracias por tu solicitud - Siguientes Pasos en Blockey"
    )
    KYB_NEXT_STEP_URL: str = os.getenv("KYB_NEXT_STEP_URL", "https://blockey.tech/verificacion-kyb")
    KYC_NEXT_STEP_URL: str = os.getenv("KYC_NEXT_STEP_URL", "https://blockey.tech/verificacion-kyc")
    TOKEN_NEXT_STEP_URL: str = os.getenv("TOKEN_NEXT_STEP_URL", "https://blockey.tech/kyc-persona-fisica")
    CONTACT_NEXT_STEP_URL: str = os.getenv("CONTACT_NEXT_STEP_URL", "https://blockey.tech/registro-empresa")
    STORAGE_PATH_PREFIX: str = os.getenv("STORAGE_PATH_PREFIX", "public")
    CLEANUP_ORPHANED_UPLOADS: bool = _env_bool("CLEANUP_ORPHANED_UPLOADS", False)
    PORT: int = int(os.getenv("PORT", "3000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def email_enabled(self) -> bool:
        return bool(self.SENDGRID_API_KEY)

    @property
    def supabase_key(self):
        return self.SUPABASE_SERVICE_ROLE or self.SUPABASE_ANON_PUBLIC


settings = Settings()


def mask_secret(val: str) -> str:
    if not val:
        return "<missing>"
    if len(val) <= 8:
        return "*" * len(val)
    return f"{val[:4]}...{val[-4:]}"


def configure_logging(level: str = None):
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# Logs missing or degraded configuration at startup; never raises
def log_configuration_warnings(config: Settings = settings) -> None:
    if not config.SUPABASE_URL:
        logger.error("SUPABASE_URL is not configured; submissions cannot be stored")
    if not config.supabase_key:
        logger.error("No Supabase key configured (SUPABASE_SERVICE_ROLE or SUPABASE_ANON_PUBLIC)")
    elif not config.SUPABASE_SERVICE_ROLE:
        logger.warning("SUPABASE_SERVICE_ROLE not set; falling back to SUPABASE_ANON_PUBLIC (reduced privileges)")

    if config.email_enabled:
        logger.info(f"SendGrid configured (key: {mask_secret(config.SENDGRID_API_KEY)})")
    else:
        logger.error(
            "SENDGRID_API_KEY was not found in the environment. Email sending will be disabled."
        )

    if config.CLEANUP_ORPHANED_UPLOADS:
        logger.info("Cleanup of orphaned uploads is enabled")
