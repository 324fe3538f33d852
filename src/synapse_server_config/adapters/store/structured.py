"""Structured-text persistence for the resolved configuration.

Purpose
-------
Implement :class:`synapse_server_config.application.ports.ConfigStore` on top
of a single YAML or JSON file. The format follows the file suffix. Every field
is written, defaults included, so the file is self-describing and a later
load reconstructs the complete object.

Contents
--------
* :class:`YAMLCodec` / :class:`JSONCodec` – text ↔ mapping.
* :class:`StructuredConfigStore` – the store adapter.
* :func:`to_document` / :func:`from_document` – configuration ↔ mapping.

System Role
-----------
Used by :class:`synapse_server_config.core.ServerConfigService` both as the
file tier of a resolution and as the write target of its result. Parse
failures surface as :class:`InvalidFormat`; OS errors propagate untouched.
"""

from __future__ import annotations

import json
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, NoReturn

import yaml

from ...application.coercion import coerce, format_value, parse_enum
from ...application.defaults import default_configuration
from ...domain.enums import ServerRole
from ...domain.errors import ConfigError, InvalidFormat, NotFound
from ...domain.settings import ServerConfiguration, blocks_of, settings_of
from ...observability import log_debug, log_error


class YAMLCodec:
    """Encode and decode YAML documents with PyYAML's safe dumper/loader."""

    format = "yaml"

    def encode(self, document: Mapping[str, object]) -> str:
        return yaml.safe_dump(dict(document), sort_keys=False, default_flow_style=False, allow_unicode=True)

    def decode(self, text: str, *, path: str) -> object:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            log_error("config_file_invalid", tier="file", path=path, format=self.format, error=str(exc))
            raise InvalidFormat(f"Invalid YAML in {path}: {exc}") from exc


class JSONCodec:
    """Encode and decode JSON documents."""

    format = "json"

    def encode(self, document: Mapping[str, object]) -> str:
        return json.dumps(document, indent=2) + "\n"

    def decode(self, text: str, *, path: str) -> object:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            log_error("config_file_invalid", tier="file", path=path, format=self.format, error=str(exc))
            raise InvalidFormat(f"Invalid JSON in {path}: {exc}") from exc


# Codecs keyed by file suffix.
_CODECS = {
    ".yaml": YAMLCodec(),
    ".yml": YAMLCodec(),
    ".json": JSONCodec(),
}


class StructuredConfigStore:
    """Persist a :class:`ServerConfiguration` in one YAML or JSON file.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> store = StructuredConfigStore(Path(tmp.name) / "Synapse.Server.config.yaml")
    >>> store.exists()
    False
    >>> store.save(default_configuration(ServerRole.NODE))
    >>> store.load().web_api_port
    20001
    >>> tmp.cleanup()
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        codec = _CODECS.get(self.path.suffix.lower())
        if codec is None:
            raise ConfigError(f"Unsupported configuration file type: {self.path.name}")
        self._codec = codec

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> ServerConfiguration:
        """Read the file and return the configuration it describes.

        Raises
        ------
        NotFound
            When the file does not exist.
        InvalidFormat
            When the text does not parse, is not a mapping, or holds a value
            that does not fit its field.
        """

        if not self.path.is_file():
            raise NotFound(f"Configuration file not found: {self.path}")
        text = self.path.read_text(encoding="utf-8")
        data = self._codec.decode(text, path=str(self.path))
        if data is None:
            data = {}
        config = from_document(data, path=str(self.path))
        log_debug("config_file_loaded", tier="file", path=str(self.path), format=self._codec.format)
        return config

    def save(self, config: ServerConfiguration) -> None:
        """Overwrite the file with *config* via a sibling temporary file."""

        text = self._codec.encode(to_document(config))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        log_debug("config_file_saved", tier="file", path=str(self.path), format=self._codec.format, size=len(text))


def to_document(config: ServerConfiguration) -> dict[str, Any]:
    """Return *config* as a plain mapping with every field present.

    Enumerations are written as their wire names, integers stay integers, and
    an absent optional string is written as ``null``.
    """

    document = _encode_block(config)
    for attribute, key in blocks_of(config):
        document[key] = _encode_block(getattr(config, attribute))
    return document


def from_document(data: object, *, path: str) -> ServerConfiguration:
    """Rebuild a configuration from a parsed document.

    Keys match case-insensitively. Fields missing from the document (or set
    to ``null``) keep the compiled default of the document's role.
    """

    mapping = _ensure_mapping(data, path=path, section=None)
    lowered = {str(key).lower(): value for key, value in mapping.items()}
    role = ServerRole.CONTROLLER
    if lowered.get("serverrole") is not None:
        parsed, ok = parse_enum(ServerRole, lowered["serverrole"])
        if not ok or parsed is None:
            _invalid(path, "ServerRole", lowered["serverrole"])
        role = parsed

    fallback = default_configuration(role)
    config = _decode_block(fallback, lowered, path=path)
    nested: dict[str, Any] = {}
    for attribute, key in blocks_of(config):
        section = lowered.get(key.lower())
        if section is None:
            continue
        section_mapping = _ensure_mapping(section, path=path, section=key)
        section_lowered = {str(name).lower(): value for name, value in section_mapping.items()}
        nested[attribute] = _decode_block(getattr(fallback, attribute), section_lowered, path=path)
    return replace(config, **nested)


def _encode_block(target: Any) -> dict[str, Any]:
    return {spec.key: _encode_value(getattr(target, spec.name)) for spec in settings_of(target)}


def _encode_value(value: object) -> object:
    if isinstance(value, Enum):
        return format_value(value)
    return value


def _decode_block(fallback: Any, lowered: Mapping[str, Any], *, path: str) -> Any:
    values: dict[str, Any] = {}
    for spec in settings_of(fallback):
        raw = lowered.get(spec.key.lower())
        if raw is None:
            continue
        value, ok = coerce(spec.kind, raw, validate=spec.validate)
        if not ok:
            _invalid(path, spec.key, raw)
        values[spec.name] = value
    return replace(fallback, **values)


def _ensure_mapping(data: object, *, path: str, section: str | None) -> Mapping[str, Any]:
    """Ensure *data* is a mapping, otherwise raise ``InvalidFormat``.

    >>> _ensure_mapping(42, path="demo.yaml", section=None)
    Traceback (most recent call last):
    ...
    synapse_server_config.domain.errors.InvalidFormat: File demo.yaml did not produce a mapping
    """

    if not isinstance(data, Mapping):
        where = f"section {section} of {path}" if section else f"File {path}"
        raise InvalidFormat(f"{where} did not produce a mapping")
    return data


def _invalid(path: str, key: str, raw: object) -> NoReturn:
    log_error("config_file_invalid", tier="file", path=path, key=key, value=str(raw))
    raise InvalidFormat(f"Invalid value {raw!r} for {key} in {path}")


__all__ = ["JSONCodec", "StructuredConfigStore", "YAMLCodec", "from_document", "to_document"]
