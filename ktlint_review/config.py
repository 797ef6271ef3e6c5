"""Configuration loading and validation.

Usage:
    config = load("ktlint-review.yaml")         # raises ConfigError on bad config
    limit = validate_limit(config.ktlint.limit)  # raises UnexpectedLimitTypeError
    generate_template("ktlint-review.yaml")     # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = "ktlint-review.yaml"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


class UnexpectedLimitTypeError(ConfigError):
    """Raised when ``ktlint.limit`` is not a non-negative integer."""

    def __init__(self, message: str = "Limit has to be a non-negative integer") -> None:
        super().__init__(message)


class UnsupportedServiceError(ConfigError):
    """Raised when the review platform is not one we can link to."""

    def __init__(
        self,
        message: str = (
            "Unsupported service! Currently supported services are "
            "GitHub, GitLab and Bitbucket server."
        ),
    ) -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------

@dataclass
class PlatformSettings:
    service: str | None = None
    url: str = ""
    api_url: str = ""
    repository: str = ""
    token: str = ""
    pull_request: str = ""
    head_sha: str = ""
    base_sha: str = ""


@dataclass
class KtlintSettings:
    """How reports are obtained and how many comments may be posted.

    ``filtering`` left as ``None`` behaves like ``True``: ktlint is only run
    against the changed Kotlin files.
    """

    filtering: bool | None = None
    report_file: str | None = None
    report_files_pattern: str | None = None
    limit: Any = None


@dataclass
class Config:
    platform: PlatformSettings = field(default_factory=PlatformSettings)
    ktlint: KtlintSettings = field(default_factory=KtlintSettings)


def validate_limit(limit: Any) -> int | None:
    """Return *limit* unchanged if it is ``None`` or a non-negative integer."""
    if limit is None:
        return None
    # bool is an int subclass but never a meaningful comment count
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise UnexpectedLimitTypeError()
    return limit


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

_ENV_OVERRIDES = {
    "KTLINT_REVIEW_SERVICE":      "service",
    "KTLINT_REVIEW_TOKEN":        "token",
    "KTLINT_REVIEW_PULL_REQUEST": "pull_request",
    "KTLINT_REVIEW_HEAD_SHA":     "head_sha",
}


def load(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Load and validate configuration from a YAML file.

    Environment variables listed in ``_ENV_OVERRIDES`` take precedence over
    the ``platform`` section of the file.

    Raises:
        ConfigError: if the file is missing, malformed, or a field has the
                     wrong type.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `ktlint-review init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    platform_raw = _section(raw, "platform", config_path)
    ktlint_raw = _section(raw, "ktlint", config_path)

    platform = PlatformSettings(
        service=_optional_str(platform_raw.get("service")),
        url=_str(platform_raw.get("url")).rstrip("/"),
        api_url=_str(platform_raw.get("api_url")).rstrip("/"),
        repository=_str(platform_raw.get("repository")),
        token=_str(platform_raw.get("token")),
        pull_request=_str(platform_raw.get("pull_request")),
        head_sha=_str(platform_raw.get("head_sha")),
        base_sha=_str(platform_raw.get("base_sha")),
    )
    for env_name, attr in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            setattr(platform, attr, value.strip())

    ktlint = KtlintSettings(
        filtering=ktlint_raw.get("filtering"),
        report_file=_optional_str(ktlint_raw.get("report_file")),
        report_files_pattern=_optional_str(ktlint_raw.get("report_files_pattern")),
        limit=ktlint_raw.get("limit"),
    )

    config = Config(platform=platform, ktlint=ktlint)
    _validate(config)
    return config


def _section(raw: dict, name: str, config_path: str) -> dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' in '{config_path}' must be a mapping.")
    return value


def _str(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _optional_str(value: Any) -> str | None:
    return _str(value) or None


def _validate(config: Config) -> None:
    """Raise ConfigError if a field has the wrong type.

    The service name and the limit are checked again when linting starts,
    so a bad value here is reported early but never silently accepted.
    """
    errors: list[str] = []

    if config.ktlint.filtering is not None and not isinstance(config.ktlint.filtering, bool):
        errors.append("  - 'ktlint.filtering' must be true or false")
    try:
        validate_limit(config.ktlint.limit)
    except UnexpectedLimitTypeError:
        errors.append("  - 'ktlint.limit' must be a non-negative integer")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


def validate_for_publishing(config: Config) -> None:
    """Raise ConfigError listing every field needed to post comments."""
    platform = config.platform
    errors: list[str] = []

    if not platform.api_url:
        errors.append("  - 'platform.api_url' is missing")
    if not platform.repository:
        errors.append("  - 'platform.repository' is missing")
    if not platform.token:
        errors.append(
            "  - 'platform.token' is missing (or set the KTLINT_REVIEW_TOKEN environment variable)"
        )
    if not platform.pull_request:
        errors.append(
            "  - 'platform.pull_request' is missing "
            "(or set the KTLINT_REVIEW_PULL_REQUEST environment variable)"
        )
    if not platform.head_sha:
        errors.append(
            "  - 'platform.head_sha' is missing (or set the KTLINT_REVIEW_HEAD_SHA environment variable)"
        )

    if errors:
        raise ConfigError("Cannot publish comments:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
platform:
  service: github                 # github, gitlab or bitbucket_server
  url: "https://github.com/owner/repo"
  api_url: "https://api.github.com"
  repository: "owner/repo"        # GitLab: project path, Bitbucket server: PROJECT/repo
  token: "ghp_xxxxxxxxxxxx"       # or KTLINT_REVIEW_TOKEN
  pull_request: ""                # or KTLINT_REVIEW_PULL_REQUEST
  head_sha: ""                    # or KTLINT_REVIEW_HEAD_SHA
  base_sha: ""                    # GitLab inline comments only

ktlint:
  filtering: true                 # false lints **/*.kt and filters afterwards
  report_file: ""                 # read an existing ktlint JSON report
  report_files_pattern: ""        # e.g. "**/build/ktlint*.json"
  limit: 30                       # maximum number of comments, remove for no limit
"""


def generate_template(output_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Write a template ktlint-review.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
