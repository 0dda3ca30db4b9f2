"""Pydantic configuration models for curlfetch."""

import os
import re
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

# Well-known curl install locations, searched in order
DEFAULT_CURL_PATHS = (
    Path("/usr/bin/curl"),
    Path("/bin/curl"),
    Path("/usr/local/bin/curl"),
    Path("/usr/sbin/curl"),
    Path("/sbin/curl"),
)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


class ByteSize(int):
    """
    Integer byte count that also accepts human-readable sizes.

    Examples:
        >>> ByteSize._parse('16kb')
        16384
        >>> ByteSize._parse('64mb')
        67108864
        >>> ByteSize._parse(1024)
        1024
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(cls._parse)

    @classmethod
    def _parse(cls, v: Any) -> int:
        if isinstance(v, bool):
            raise ValueError(f"Invalid byte size: {v}")
        if isinstance(v, int):
            if v <= 0:
                raise ValueError(f"Byte size must be positive, got {v}")
            return v
        if isinstance(v, str):
            text = v.lower().strip()
            # Longest suffix first so "mb" is not read as "b"
            for unit, mult in (("gb", 1024**3), ("mb", 1024**2), ("kb", 1024), ("b", 1)):
                if text.endswith(unit):
                    try:
                        return cls._parse(int(float(text[: -len(unit)].strip()) * mult))
                    except ValueError as err:
                        raise ValueError(f"Invalid number in byte size: {v}") from err
            try:
                return cls._parse(int(text))
            except ValueError:
                pass
        raise ValueError(f"Invalid byte size: {v}. Use format like '16kb', '64mb', or integer bytes.")


def expand_env_vars(value: str) -> str:
    """Expand $VAR and ${VAR} references, leaving unknown variables untouched."""

    def replace(match: re.Match) -> str:
        var_name = match.group(1) or match.group(2)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_PATTERN.sub(replace, value)


class ToolConfig(BaseModel):
    """Where to find the external HTTP tool and how many arguments it may take."""

    candidate_paths: list[Path] = Field(
        default_factory=lambda: list(DEFAULT_CURL_PATHS),
        description="Ordered list of paths checked for the curl binary",
    )
    max_args: int = Field(
        1024,
        ge=8,
        description="Upper bound on the tool's argument vector; extra headers are dropped",
    )

    model_config = {"extra": "forbid"}


class LimitsConfig(BaseModel):
    """Resource limits applied to every fetch operation."""

    max_response_size: ByteSize = Field(
        ByteSize(64 * 1024 * 1024),
        description="Captured output ceiling (headers + body), e.g. '64mb'",
    )
    read_chunk_size: int = Field(16384, ge=1, description="Bytes requested per pipe read")
    poll_interval: float = Field(
        1.0,
        gt=0,
        description="Seconds to wait for pipe readiness before re-checking the deadline",
    )

    model_config = {"extra": "forbid"}


class CurlFetchConfig(BaseModel):
    """
    Root configuration model for curlfetch.

    Example:
        config = CurlFetchConfig(
            default_timeout=10,
            default_headers={"Authorization": "Bearer $API_TOKEN"},
        )

    YAML format:
        default_timeout: 10
        default_headers:
          User-Agent: my-agent/1.0
        tool:
          candidate_paths: [/opt/curl/bin/curl]
        limits:
          max_response_size: 8mb
    """

    tool: ToolConfig = Field(default_factory=ToolConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)

    default_timeout: int = Field(30, ge=1, description="Stall timeout in seconds when a request gives none")
    default_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers sent with every request; request headers win on conflict",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def model_post_init(self, __context: object) -> None:
        """Expand environment variables in default header values."""
        if self.default_headers:
            expanded = {name: expand_env_vars(value) for name, value in self.default_headers.items()}
            object.__setattr__(self, "default_headers", expanded)

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "CurlFetchConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "CurlFetchConfig":
        """Load config from YAML file."""
        return cls.from_yaml(Path(path).read_text())
