"""
Configuration
=============
Loads run settings from an optional YAML/JSON file, environment variables
and the .env file (via python-dotenv), then validates them with pydantic.

Resolution order (later wins):
    1. Model defaults below
    2. Config file — explicit path, else REVIEW_CONFIG_PATH, else ./review.yaml
       if it exists. The .NET-style appsettings.json layout
       ({"AppSettings": {...}, "GeminiSettings": {...}}) is accepted too.
    3. Environment variables
    4. Explicit overrides (CLI flags / API request body)

Environment Variables:
    REVIEW_CONFIG_PATH          — path of the YAML/JSON settings file
    SONAR_REPORT_PATH           — SonarQube issues report (JSON)
    ROSLYN_REPORT_PATH          — Roslyn analyzer report (SARIF or JSON)
    SEVERITY_THRESHOLD          — Critical / Major / Minor / Info (default: Major)
    LLM_ENABLED                 — true / false (default: true)
    LLM_PROVIDER                — gemini / openai_compatible (default: gemini)
    LLM_ENDPOINT                — provider endpoint URL
    LLM_API_KEY_ENV_VAR         — NAME of the variable holding the API key
    LLM_MODEL                   — model id (openai_compatible only)
    SONAR_HOST_URL              — base URL used for issue deep links
    SKIP_FOREIGN_ENGINE_ENTRIES — skip entries tagged with another tool's engine
    PROMPT_TEMPLATE_PATH        — custom prompt template with an {{ISSUES}} marker
    RESULTS_PATH                — write the final run state to this JSON file

Secrets:
    API keys are never stored in settings. Settings only carry the NAME of
    the environment variable; the client reads the value at call time.

Failure:
    Any missing file, unparsable document or validation failure raises
    ConfigurationError. The run never starts with invalid settings.
"""
import os
import logging
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from review_pipeline.core.constants import DEFAULT_CONFIG_FILE, DEFAULT_THRESHOLD
from review_pipeline.core.errors import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1/models/"
    "gemini-2.5-flash:generateContent"
)
GROQ_ENDPOINT = "https://api.groq.com/openai/v1"


# ---------------------------------------------------------------------------
# Provider settings (one variant per LLM provider)
# ---------------------------------------------------------------------------
class LLMSettings(BaseModel):
    """Settings shared by every provider variant."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    endpoint: str
    api_key_env_var: str = "LLM_API_KEY"

    @field_validator("endpoint", "api_key_env_var")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class GeminiSettings(LLMSettings):
    provider: Literal["gemini"] = "gemini"
    endpoint: str = GEMINI_ENDPOINT
    api_key_env_var: str = "GEMINI_API_KEY"


class OpenAICompatibleSettings(LLMSettings):
    provider: Literal["openai_compatible"] = "openai_compatible"
    endpoint: str = GROQ_ENDPOINT
    api_key_env_var: str = "GROQ_API_KEY"
    model: str = "llama-3.3-70b-versatile"


ProviderSettings = Annotated[
    Union[GeminiSettings, OpenAICompatibleSettings],
    Field(discriminator="provider"),
]


# ---------------------------------------------------------------------------
# Application settings
# ---------------------------------------------------------------------------
class AppSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    sonar_report_path: str = "reports/sonar-report.json"
    roslyn_report_path: str = "reports/roslyn-report.json"
    llm_enabled: bool = True
    severity_threshold: str = DEFAULT_THRESHOLD
    llm: ProviderSettings = Field(default_factory=GeminiSettings)
    sonar_host_url: str = "https://sonarcloud.io"
    skip_foreign_engine_entries: bool = True
    prompt_template_path: Optional[str] = None
    results_path: Optional[str] = None
    github_context: Dict[str, str] = Field(default_factory=dict)

    @field_validator("sonar_report_path", "roslyn_report_path", "severity_threshold")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("sonar_host_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


# ---------------------------------------------------------------------------
# Key mapping tables
# ---------------------------------------------------------------------------
_ENV_KEYS: Dict[str, str] = {
    "SONAR_REPORT_PATH": "sonar_report_path",
    "ROSLYN_REPORT_PATH": "roslyn_report_path",
    "SEVERITY_THRESHOLD": "severity_threshold",
    "LLM_ENABLED": "llm_enabled",
    "SONAR_HOST_URL": "sonar_host_url",
    "SKIP_FOREIGN_ENGINE_ENTRIES": "skip_foreign_engine_entries",
    "PROMPT_TEMPLATE_PATH": "prompt_template_path",
    "RESULTS_PATH": "results_path",
}

_LLM_ENV_KEYS: Dict[str, str] = {
    "LLM_PROVIDER": "provider",
    "LLM_ENDPOINT": "endpoint",
    "LLM_API_KEY_ENV_VAR": "api_key_env_var",
    "LLM_MODEL": "model",
}

# appsettings.json (PascalCase) → AppSettings field
_APPSETTINGS_KEYS: Dict[str, str] = {
    "SonarReportPath": "sonar_report_path",
    "RoslynReportPath": "roslyn_report_path",
    "LlmEnabled": "llm_enabled",
    "SeverityThreshold": "severity_threshold",
    "GitHubContext": "github_context",
}

_GEMINI_KEYS: Dict[str, str] = {
    "Endpoint": "endpoint",
    "ApiKeyEnvVarName": "api_key_env_var",
}


def _from_appsettings_layout(data: Dict[str, Any]) -> Dict[str, Any]:
    """Translate the PascalCase appsettings.json layout into field names."""
    section = data.get("AppSettings") or {}
    raw: Dict[str, Any] = {}
    for key, field_name in _APPSETTINGS_KEYS.items():
        if key in section:
            raw[field_name] = section[key]

    gemini = dict(section.get("Gemini") or {})
    gemini.update(data.get("GeminiSettings") or {})
    llm = {_GEMINI_KEYS[k]: v for k, v in gemini.items() if k in _GEMINI_KEYS}
    if llm:
        raw["llm"] = {"provider": "gemini", **llm}
    return raw


def _read_config_file(path: Path) -> Dict[str, Any]:
    """Read a YAML or JSON settings document into a plain dict."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Config file {path} is not valid YAML/JSON: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")

    if "AppSettings" in data or "GeminiSettings" in data:
        return _from_appsettings_layout(data)
    return dict(data)


def _resolve_config_path(config_path: Optional[str]) -> Optional[Path]:
    """
    Pick the settings file to load.

    An explicitly requested file (argument or REVIEW_CONFIG_PATH) must
    exist; the implicit ./review.yaml is optional.
    """
    explicit = config_path or os.getenv("REVIEW_CONFIG_PATH")
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {explicit}")
        return path

    default = Path(DEFAULT_CONFIG_FILE)
    return default if default.is_file() else None


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> AppSettings:
    """
    Resolve and validate the run settings.

    Parameters
    ----------
    config_path : str, optional
        Settings file to load instead of REVIEW_CONFIG_PATH / ./review.yaml.
    overrides : dict, optional
        Field values applied last. Keys with a None value are ignored.

    Returns
    -------
    AppSettings
        Frozen, validated settings.

    Raises
    ------
    ConfigurationError
        If the file is missing/unparsable or validation fails.
    """
    raw: Dict[str, Any] = {}

    path = _resolve_config_path(config_path)
    if path is not None:
        logger.info("Loading settings from %s", path)
        raw.update(_read_config_file(path))

    for env_name, field_name in _ENV_KEYS.items():
        value = os.getenv(env_name)
        if value is not None and value != "":
            raw[field_name] = value

    llm_raw = raw.get("llm") or {}
    if not isinstance(llm_raw, dict):
        raise ConfigurationError("Setting 'llm' must be a mapping of provider settings")
    llm_raw = dict(llm_raw)
    for env_name, field_name in _LLM_ENV_KEYS.items():
        value = os.getenv(env_name)
        if value:
            llm_raw[field_name] = value
    if llm_raw:
        llm_raw.setdefault("provider", "gemini")
        raw["llm"] = llm_raw

    for key, value in (overrides or {}).items():
        if value is not None:
            raw[key] = value

    try:
        settings = AppSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc

    logger.debug(
        "Settings resolved: sonar=%s roslyn=%s threshold=%s llm_enabled=%s provider=%s",
        settings.sonar_report_path, settings.roslyn_report_path,
        settings.severity_threshold, settings.llm_enabled, settings.llm.provider,
    )
    return settings
