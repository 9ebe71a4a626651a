"""
Local process configuration.

User-facing settings (port, log level, interface preferences) live in the
JSON settings file managed by ``services.storage.settings_store``; this
module only decides where that file and its companions are kept.
"""

import os
from pathlib import Path

# Per-user data directory shared by the settings file and caches.
CONFIG_DIR = Path(os.environ.get("CUI_CONFIG_DIR", Path.home() / ".cui")).expanduser()

# Settings document; override with CUI_CONFIG_PATH for tests or sandboxes.
SETTINGS_PATH = Path(os.environ.get("CUI_CONFIG_PATH", CONFIG_DIR / "config.json")).expanduser()

# Model metadata cache maintained by the model info service (never the store).
MODEL_CACHE_PATH = CONFIG_DIR / "model-cache.json"

# uvicorn bind settings; the port itself comes from the settings document.
SERVER_HOST = os.environ.get("CUI_HOST", "0.0.0.0")
SERVER_RELOAD = os.environ.get("CUI_RELOAD", "").lower() in ("1", "true", "yes")

# Seconds allowed for CLI probes (version lookup, model listing).
CLI_TIMEOUT_SECONDS = 30
