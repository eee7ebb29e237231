from vyper import v, Vyper
from loguru import logger

from pathlib import Path


def load_config() -> Vyper:
    # Initialize Vyper
    v.set_config_name("njalladns")  # Looks for njalladns.yaml/njalladns.yml
    # User-supplied paths checked first so they override the bundled defaults
    v.add_config_path("/etc/njalladns")
    v.add_config_path(".")
    v.add_config_path("./config")
    v.add_config_path(str(Path(__file__).parent))
    v.set_env_prefix("NJALLA")
    v.set_env_key_replacer("_", ".")
    v.automatic_env()

    v.set_default("log_level", "info")
    v.set_default("log_file", "")

    # API access
    v.set_default("api_token", "")
    v.set_default("api.endpoint", "https://njal.la/api/1/")
    v.set_default("api.timeout_seconds", 30)

    # Retry policy for transient transport failures
    v.set_default("retry.max_retries", 3)
    v.set_default("retry.base_delay_ms", 100)
    v.set_default("retry.max_delay_ms", 2000)
    v.set_default("retry.random_factor", 0.5)

    # Provider timeouts: whole batch, zone listing, single remote call
    v.set_default("timeouts.operation_seconds", 60)
    v.set_default("timeouts.list_seconds", 20)
    v.set_default("timeouts.call_seconds", 10)

    try:
        if not v.read_in_config():
            logger.warning("No config file found, using defaults")
    except Exception:
        logger.warning("No config file found, using defaults")

    return v


# Global config instance
config = load_config()
