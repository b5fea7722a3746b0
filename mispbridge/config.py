"""Application configuration read from YAML files and environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

_COMMON_FILE = "config.yaml"
_DEV_FILE = "config_dev.yaml"
_PROD_FILE = "config_prod.yaml"
_DEFAULT_ZABBIX_PORT = 10051

_MISSING = object()
_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}


class ConfigError(Exception):
    """The configuration cannot be read or does not pass validation."""


@dataclass
class LogSet:
    """Settings for one type of log message."""

    writing_stdout: bool = False
    writing_file: bool = False
    max_file_size: int = 0
    msg_type_name: str = ""
    path_directory: str = ""


@dataclass
class Organization:
    """An organisation and the source name it is known by."""

    org_name: str = ""
    source_name: str = ""


@dataclass
class Handshake:
    """Periodic handshake message sent to Zabbix."""

    time_interval: int = 0
    message: str = ""


@dataclass
class EventType:
    """An event type forwarded to Zabbix."""

    is_transmit: bool = False
    event_type: str = ""
    zabbix_key: str = ""
    handshake: Handshake = field(default_factory=Handshake)


@dataclass
class ZabbixOptions:
    """Connection settings for Zabbix."""

    network_port: int = 0
    network_host: str = ""
    zabbix_host: str = ""
    event_types: list[EventType] = field(default_factory=list)


@dataclass
class NatsSubscriptions:
    """NATS subjects the application uses."""

    sender_case: str = ""
    listener_command: str = ""


@dataclass
class NatsConfig:
    """Connection settings for NATS."""

    port: int = 0
    cache_ttl: int = 0
    host: str = ""
    subscriptions: NatsSubscriptions = field(default_factory=NatsSubscriptions)


@dataclass
class MispConfig:
    """Connection settings for MISP."""

    host: str = ""
    auth: str = ""


@dataclass
class RedisConfig:
    """Connection settings for Redis."""

    port: int = 0
    host: str = ""


@dataclass
class TheHiveConfig:
    """Settings for interaction with TheHive."""

    send: bool = False


@dataclass
class RulesConfig:
    """Where the message processing rules are stored."""

    directory: str = ""
    file: str = ""


@dataclass
class ConfigApp:
    """The whole application configuration."""

    log_list: list[LogSet] = field(default_factory=list)
    organizations: list[Organization] = field(default_factory=list)
    zabbix: ZabbixOptions = field(default_factory=ZabbixOptions)
    nats: NatsConfig = field(default_factory=NatsConfig)
    misp: MispConfig = field(default_factory=MispConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    thehive: TheHiveConfig = field(default_factory=TheHiveConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)

    def validate(self) -> None:
        """Raise ConfigError listing every setting that is out of range or missing."""
        problems = []

        def port(name: str, value: int) -> None:
            if not 0 < value <= 65535:
                problems.append(f"{name} must be in 1..65535, got {value}")

        def required(name: str, value: str) -> None:
            if not value:
                problems.append(f"{name} is required")

        port("zabbix.network_port", self.zabbix.network_port)
        required("zabbix.network_host", self.zabbix.network_host)
        required("zabbix.zabbix_host", self.zabbix.zabbix_host)

        port("nats.port", self.nats.port)
        if not 10 < self.nats.cache_ttl <= 86400:
            problems.append(f"nats.cache_ttl must be in 11..86400, got {self.nats.cache_ttl}")
        required("nats.host", self.nats.host)
        required("nats.subscriptions.sender_case", self.nats.subscriptions.sender_case)
        required(
            "nats.subscriptions.listener_command", self.nats.subscriptions.listener_command
        )

        port("redis.port", self.redis.port)

        if problems:
            raise ConfigError("; ".join(problems))


def _lower_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(v) for v in value]
    return value


def _lookup(data: Mapping[str, Any], path: str) -> Any:
    node: Any = data
    for part in path.lower().split("."):
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return _MISSING if node is None else node


def _as_str(value: Any) -> str:
    if value is None or value is _MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip() in _TRUE_WORDS
    return False


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{where}' must be a mapping")
    return value


def _items(value: Any, where: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"'{where}' must be a list")
    return value


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as stream:
            data = yaml.safe_load(stream)
    except OSError as exc:
        raise ConfigError(f"cannot read '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in '{path}': {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"'{path}' must hold a mapping at the top level")
    return _lower_keys(data)


def _find_file(name: str, config_dir: Path) -> Path:
    path = config_dir / name
    if not path.is_file():
        raise ConfigError(f"file '{name}' is not found")
    return path


def _log_set(item: Any) -> LogSet:
    d = _mapping(item, "LOGGING")
    return LogSet(
        writing_stdout=_as_bool(d.get("writingstdout")),
        writing_file=_as_bool(d.get("writingfile")),
        max_file_size=_as_int(d.get("maxfilesize")),
        msg_type_name=_as_str(d.get("msgtypename")),
        path_directory=_as_str(d.get("pathdirectory")),
    )


def _organization(item: Any) -> Organization:
    d = _mapping(item, "ORGANIZATIONS")
    return Organization(
        org_name=_as_str(d.get("orgname")),
        source_name=_as_str(d.get("sourcename")),
    )


def _event_type(item: Any) -> EventType:
    d = _mapping(item, "ZABBIX.eventTypes")
    hs = _mapping(d.get("handshake"), "ZABBIX.eventTypes.handshake")
    return EventType(
        is_transmit=_as_bool(d.get("istransmit")),
        event_type=_as_str(d.get("eventtype")),
        zabbix_key=_as_str(d.get("zabbixkey")),
        handshake=Handshake(
            time_interval=_as_int(hs.get("timeinterval")),
            message=_as_str(hs.get("message")),
        ),
    )


def _apply_common(conf: ConfigApp, data: Mapping[str, Any]) -> None:
    logging = _lookup(data, "logging")
    if logging is not _MISSING:
        conf.log_list = [_log_set(item) for item in _items(logging, "LOGGING")]

    orgs = _lookup(data, "organizations")
    if orgs is not _MISSING:
        conf.organizations = [
            _organization(item) for item in _items(orgs, "ORGANIZATIONS")
        ]

    zabbix = _lookup(data, "zabbix")
    if zabbix is not _MISSING:
        z = _mapping(zabbix, "ZABBIX")
        port = _as_int(z.get("networkport"))
        if not (port != 0 and port < 65536):
            port = _DEFAULT_ZABBIX_PORT
        events = z.get("eventtypes", z.get("eventtype"))
        conf.zabbix = ZabbixOptions(
            network_port=port,
            network_host=_as_str(z.get("networkhost")),
            zabbix_host=_as_str(z.get("zabbixhost")),
            event_types=[_event_type(item) for item in _items(events, "ZABBIX.eventTypes")],
        )


def _apply_special(conf: ConfigApp, data: Mapping[str, Any]) -> None:
    def get(path: str) -> Any:
        return _lookup(data, path)

    string_settings = (
        ("nats.host", conf.nats, "host"),
        ("nats.subscriptions.sender_case", conf.nats.subscriptions, "sender_case"),
        ("nats.subscriptions.listener_command", conf.nats.subscriptions, "listener_command"),
        ("misp.host", conf.misp, "host"),
        ("misp.auth", conf.misp, "auth"),
        ("redis.host", conf.redis, "host"),
        ("rules_proc_msg_for_misp.directory", conf.rules, "directory"),
        ("rules_proc_msg_for_misp.file", conf.rules, "file"),
    )
    for path, target, name in string_settings:
        value = get(path)
        if value is not _MISSING:
            setattr(target, name, _as_str(value))

    int_settings = (
        ("nats.port", conf.nats, "port"),
        ("nats.cachettl", conf.nats, "cache_ttl"),
        ("redis.port", conf.redis, "port"),
    )
    for path, target, name in int_settings:
        value = get(path)
        if value is not _MISSING:
            setattr(target, name, _as_int(value))

    send = get("thehive.send")
    if send is not _MISSING:
        conf.thehive.send = _as_bool(send)


def _apply_environment(conf: ConfigApp, env: Mapping[str, str]) -> None:
    def value(name: str) -> str:
        return env.get(name, "") or ""

    def port(name: str) -> Optional[int]:
        text = value(name)
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            return None

    if value("GO_PHMISP_NHOST"):
        conf.nats.host = value("GO_PHMISP_NHOST")
    nats_port = port("GO_PHMISP_NPORT")
    if nats_port is not None:
        conf.nats.port = nats_port
    if value("GO_PHMISP_NSUBSENDERCASE"):
        conf.nats.subscriptions.sender_case = value("GO_PHMISP_NSUBSENDERCASE")
    if value("GO_PHMISP_NSUBLISTENERCOMMAND"):
        conf.nats.subscriptions.listener_command = value("GO_PHMISP_NSUBLISTENERCOMMAND")

    if value("GO_PHMISP_MHOST"):
        conf.misp.host = value("GO_PHMISP_MHOST")
    if value("GO_PHMISP_MAUTH"):
        conf.misp.auth = value("GO_PHMISP_MAUTH")

    if value("GO_PHMISP_REDISHOST"):
        conf.redis.host = value("GO_PHMISP_REDISHOST")
    redis_port = port("GO_PHMISP_REDISPORT")
    if redis_port is not None:
        conf.redis.port = redis_port

    if value("GO_PHMISP_RULES_DIR"):
        conf.rules.directory = value("GO_PHMISP_RULES_DIR")
    if value("GO_PHMISP_RULES_FILE"):
        conf.rules.file = value("GO_PHMISP_RULES_FILE")


def load_config(
    config_dir: Union[str, os.PathLike],
    environ: Optional[Mapping[str, str]] = None,
) -> ConfigApp:
    """Read, merge and validate the configuration found in ``config_dir``.

    ``config.yaml`` holds the common settings; ``config_dev.yaml`` is used
    when GO_PHMISP_MAIN is ``development`` and ``config_prod.yaml`` otherwise.
    Environment variables override the file settings. Raises ConfigError.
    """
    env = os.environ if environ is None else environ
    directory = Path(config_dir)
    if not directory.is_dir():
        raise ConfigError(f"configuration directory '{directory}' does not exist")

    conf = ConfigApp()
    _apply_common(conf, _read_yaml(_find_file(_COMMON_FILE, directory)))

    special = _DEV_FILE if env.get("GO_PHMISP_MAIN") == "development" else _PROD_FILE
    _apply_special(conf, _read_yaml(_find_file(special, directory)))

    _apply_environment(conf, env)
    conf.validate()
    return conf