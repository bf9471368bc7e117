from __future__ import annotations

import codecs
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

# Config models map YAML sections to typed structures.


class MatchConfig(BaseModel):
    # Match section feeds build_predicate; the pattern itself always comes from the CLI.
    model_config = ConfigDict(extra="forbid")
    mode: Literal["contains", "regex", "exact"] = "contains"
    ignore_case: bool = False
    invert: bool = False


class SourceConfig(BaseModel):
    # Source decoding options for FileLineSource.
    model_config = ConfigDict(extra="forbid")
    encoding: str = "utf-8"
    decode_errors: Literal["strict", "replace"] = "strict"

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        # Unknown codecs would otherwise only fail on the first decoded line.
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"unknown encoding: {value!r}") from exc
        return value


class OutputConfig(BaseModel):
    # Output goes to stdout unless a file is configured.
    model_config = ConfigDict(extra="forbid")
    # Accept both output.file and output.file_path; normalize to file_path.
    file_path: str | None = Field(default=None, validation_alias=AliasChoices("file_path", "file"))
    line_numbers: bool = False
    max_count: int | None = Field(default=None, ge=1)
    atomic_replace: bool = False


class LoggingConfig(BaseModel):
    # Structured log sink selection.
    model_config = ConfigDict(extra="forbid")
    sink: Literal["none", "stderr", "jsonl"] = "none"
    path: str | None = None
    level: Literal["debug", "info"] = "info"

    @model_validator(mode="after")
    def _require_path(self) -> LoggingConfig:
        # For jsonl sink, a path is required to avoid silent defaults.
        if self.sink == "jsonl" and not self.path:
            raise ValueError("logging.path is required when sink is 'jsonl'")
        return self


class AppConfig(BaseModel):
    # AppConfig is the top-level typed view of configuration.
    model_config = ConfigDict(extra="forbid")
    version: int
    match: MatchConfig = Field(default_factory=MatchConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
