# backend/hrdb/serve.py
"""
Run the HR portal API under uvicorn.

    python -m hrdb.serve

Everything is configured from the environment: HOST, PORT, RELOAD,
LOG_LEVEL, FORWARDED_ALLOW_IPS and the SSL_* certificate paths.
"""

import logging
import os
from typing import Any, Dict

import uvicorn

logger = logging.getLogger("hrdb.serve")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


def _tls_kwargs() -> Dict[str, Any]:
    """uvicorn TLS options for whichever SSL_* variables are set."""
    mapping = {
        "SSL_CERTFILE": "ssl_certfile",
        "SSL_KEYFILE": "ssl_keyfile",
        "SSL_KEYFILE_PASSWORD": "ssl_keyfile_password",
    }
    return {option: os.environ[env] for env, option in mapping.items() if os.getenv(env)}


def main() -> None:
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    tls = _tls_kwargs()
    logger.info("Starting HR portal API on %s:%s (tls=%s)", host, port, bool(tls))

    uvicorn.run(
        "hrdb.main:app",
        host=host,
        port=port,
        reload=_env_flag("RELOAD"),
        log_level=log_level,
        proxy_headers=True,
        forwarded_allow_ips=os.getenv("FORWARDED_ALLOW_IPS", "*"),
        **tls,
    )


if __name__ == "__main__":
    main()
