"""
Model metadata resolver for the web UI model picker.

Resolution order: the ``models`` section of the settings document, then a
private on-disk cache, then a hardcoded fallback list. The cache file is
owned by this service and is never written through the settings store.
"""

from __future__ import annotations

import copy
import json
import logging
import re
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import config
from services.storage.schemas import ModelInfo
from services.storage.settings_store import ConfigStore, ConfigStoreError

logger = logging.getLogger(__name__)

MODEL_PROVIDER_KEY = "claude-code"
CLI_MODEL_PROMPT = "what are the model choices and default option for Claude Code CLI?"

_MODEL_LINE = re.compile(
    r"[-•]\s*\*?\*?`?(\w+(?:\[\d+[mk]\])?)`?\*?\*?\s*[-–]\s*(.+?)(?:\n|$)",
    re.IGNORECASE,
)
_CONTEXT_SUFFIX = re.compile(r"\[(\d+[mk])\]", re.IGNORECASE)
_FAMILY = re.compile(r"\b(sonnet|opus|haiku)\b", re.IGNORECASE)
_DEFAULT_HINT = re.compile(
    r"default[^.]*?(?:falls?\s*back|adapts?|uses?)[^.]*?\b(sonnet|opus|haiku)\b",
    re.IGNORECASE,
)

FALLBACK_MODELS: List[ModelInfo] = [
    {"value": "default", "label": "Default (Sonnet)", "description": "Recommended adaptive model"},
    {"value": "sonnet", "label": "Sonnet", "description": "Latest Sonnet for daily coding tasks"},
    {"value": "opus", "label": "Opus", "description": "Most capable for complex reasoning"},
    {"value": "haiku", "label": "Haiku", "description": "Fast and efficient for simple tasks"},
]
FALLBACK_DEFAULT_MODEL = "sonnet"


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def fallback_model_data() -> Dict[str, Any]:
    return {
        "models": copy.deepcopy(FALLBACK_MODELS),
        "defaultModel": FALLBACK_DEFAULT_MODEL,
        "lastUpdated": _now_iso(),
        "fromCache": True,
    }


def parse_model_listing(text: str) -> Dict[str, Any]:
    """
    Extract model bullets such as ``- **`opus`** - Most capable`` from a
    free-form CLI answer. Returns the fallback data when nothing matches.
    """
    models: List[ModelInfo] = []
    default_model = FALLBACK_DEFAULT_MODEL
    for match in _MODEL_LINE.finditer(text):
        value = match.group(1).lower()
        description = match.group(2).replace("**", "").replace("`", "").strip()
        label = value[:1].upper() + value[1:]
        if value == "default":
            family = _FAMILY.search(description)
            if family:
                default_model = family.group(1).lower()
                label = f"Default ({default_model.capitalize()})"
            else:
                label = "Default (Sonnet)"
        if "[" in value:
            base = value.split("[", 1)[0]
            context = _CONTEXT_SUFFIX.search(value)
            label = base.capitalize()
            if context:
                label += f" ({context.group(1).upper()} context)"
        models.append({"value": value, "label": label, "description": description})

    if not models:
        return fallback_model_data()

    hint = _DEFAULT_HINT.search(text)
    if hint:
        default_model = hint.group(1).lower()
        for model in models:
            if model["value"] == "default":
                model["label"] = f"Default ({default_model.capitalize()})"
    return {
        "models": models,
        "defaultModel": default_model,
        "lastUpdated": _now_iso(),
        "fromCache": False,
    }


class ModelInfoService:
    """Resolves and caches the list of selectable models."""

    def __init__(self, store: ConfigStore, cache_path: Path | str | None = None) -> None:
        self._store = store
        self.cache_path = Path(cache_path) if cache_path is not None else config.MODEL_CACHE_PATH
        self._model_data: Optional[Dict[str, Any]] = None

    def initialize(self) -> None:
        configured = self._models_from_config()
        if configured:
            self._model_data = {
                "models": configured,
                "defaultModel": configured[0].get("value") or "default",
                "lastUpdated": _now_iso(),
                "fromCache": False,
            }
            logger.info(
                "Loaded %d models from settings (default %s).",
                len(configured),
                self._model_data["defaultModel"],
            )
            self._save_cache(self._model_data)
            return

        cached = self._load_cache()
        if cached is not None:
            cached["fromCache"] = True
            self._model_data = cached
            logger.warning("Using cached model data from %s (updated %s).", self.cache_path, cached["lastUpdated"])
            return

        self._model_data = fallback_model_data()
        logger.warning("No models configured in settings; using default model list.")

    def refresh_models(self, *, use_cli: bool = False) -> None:
        """Re-resolve the model list, optionally asking the CLI first."""
        if use_cli:
            data = self.query_cli()
            if data is not None and not data["fromCache"]:
                self._model_data = data
                self._save_cache(data)
                return
        self.initialize()

    def _models_from_config(self) -> List[ModelInfo]:
        try:
            models = self._store.get_config().get("models") or {}
        except ConfigStoreError as exc:
            logger.warning("Unable to read models from settings: %s", exc)
            return []
        entries = models.get(MODEL_PROVIDER_KEY) if isinstance(models, dict) else None
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, dict)]

    def _save_cache(self, data: Dict[str, Any]) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to save model cache %s: %s", self.cache_path, exc)
            return
        logger.debug("Model data saved to %s.", self.cache_path)

    def _load_cache(self) -> Optional[Dict[str, Any]]:
        if not self.cache_path.exists():
            return None
        try:
            payload = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to load model cache %s: %s", self.cache_path, exc)
            return None
        if not isinstance(payload, dict) or not all(
            payload.get(key) for key in ("models", "defaultModel", "lastUpdated")
        ):
            logger.warning("Invalid model cache structure in %s.", self.cache_path)
            return None
        return payload

    def query_cli(self) -> Optional[Dict[str, Any]]:
        """Ask the CLI for its model choices; ``None`` on any failure."""
        executable = self._executable()
        command = [executable, "-p", CLI_MODEL_PROMPT, "--output-format", "json"]
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=config.CLI_TIMEOUT_SECONDS,
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.error("Error querying %s for models: %s", executable, exc)
            return None
        output = completed.stdout
        try:
            payload = json.loads(output)
        except json.JSONDecodeError:
            logger.debug("CLI output is not JSON; parsing raw text.")
            return parse_model_listing(output)
        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, str):
            logger.warning("No result field in CLI JSON response.")
            return parse_model_listing(output)
        return parse_model_listing(result)

    def _executable(self) -> str:
        try:
            return self._store.get_config().get("claudeExecutablePath") or "claude"
        except ConfigStoreError:
            return "claude"

    def get_model_data(self) -> Dict[str, Any]:
        if self._model_data is None:
            return fallback_model_data()
        return copy.deepcopy(self._model_data)

    def get_available_models(self) -> List[ModelInfo]:
        return self.get_model_data()["models"]

    def get_default_model(self) -> str:
        return self.get_model_data()["defaultModel"]
