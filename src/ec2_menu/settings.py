from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("ec2-menu.yaml")
CONFIG_PATH_ENV = "EC2_MENU_CONFIG"
ACCESS_KEY_ENV = "AWS_ACCESS_KEY_ID"
SECRET_KEY_ENV = "AWS_SECRET_ACCESS_KEY"
SESSION_TOKEN_ENV = "AWS_SESSION_TOKEN"
REGION_ENVS = ("AWS_REGION", "AWS_DEFAULT_REGION")

DEFAULT_REGION = "us-east-1"
DEFAULT_IMAGE_ID = "ami-0866a3c8686eaeeba"
DEFAULT_INSTANCE_TYPE = "t2.micro"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_TAGS: Mapping[str, str] = MappingProxyType({"Environment": "Production", "Department": "Finance"})


class MissingCredentialsError(RuntimeError):
    pass


@dataclass(slots=True, frozen=True)
class AwsCredentials:
    access_key_id: str
    secret_access_key: str
    session_token: str | None = None

    def __repr__(self) -> str:
        return f"AwsCredentials(access_key_id={self.access_key_id!r}, secret_access_key='***')"


@dataclass(slots=True, frozen=True)
class Ec2MenuSettings:
    region: str = DEFAULT_REGION
    image_id: str = DEFAULT_IMAGE_ID
    instance_type: str = DEFAULT_INSTANCE_TYPE
    log_level: str = DEFAULT_LOG_LEVEL
    tags: Mapping[str, str] = field(default_factory=lambda: DEFAULT_TAGS)


def load_credentials(environ: Mapping[str, str] | None = None) -> AwsCredentials:
    env = os.environ if environ is None else environ
    access_key_id = env.get(ACCESS_KEY_ENV, "").strip()
    secret_access_key = env.get(SECRET_KEY_ENV, "").strip()
    missing = [
        name
        for name, value in ((ACCESS_KEY_ENV, access_key_id), (SECRET_KEY_ENV, secret_access_key))
        if not value
    ]
    if missing:
        raise MissingCredentialsError(f"AWS credentials are not defined: {', '.join(missing)}")
    return AwsCredentials(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=env.get(SESSION_TOKEN_ENV) or None,
    )


def load_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Ec2MenuSettings:
    env = os.environ if environ is None else environ
    if config_path is None:
        config_path = env.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    path = Path(config_path).expanduser()

    loaded: Any = {}
    if path.is_file():
        try:
            with path.open("r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle) or {}
        except yaml.YAMLError as error:
            logger.warning("Ignoring unreadable settings file %s: %s", path, error)
            loaded = {}
        else:
            logger.debug("Loaded settings from %s", path)

    region = _env_region(env) or _coerce_text(_safe_mapping_get(loaded, "region"), DEFAULT_REGION)
    return Ec2MenuSettings(
        region=region,
        image_id=_coerce_text(_safe_mapping_get(loaded, "image_id"), DEFAULT_IMAGE_ID),
        instance_type=_coerce_text(_safe_mapping_get(loaded, "instance_type"), DEFAULT_INSTANCE_TYPE),
        log_level=_coerce_text(_safe_mapping_get(loaded, "log_level"), DEFAULT_LOG_LEVEL).upper(),
        tags=_parse_tags(_safe_mapping_get(loaded, "tags")) or DEFAULT_TAGS,
    )


def _env_region(env: Mapping[str, str]) -> str | None:
    for name in REGION_ENVS:
        value = env.get(name, "").strip()
        if value:
            return value
    return None


def _parse_tags(value: Any) -> Mapping[str, str]:
    try:
        items = value.items()
    except AttributeError:
        return MappingProxyType({})

    parsed: dict[str, str] = {}
    for key, tag_value in items:
        if key is None or tag_value is None:
            continue
        key_text = str(key).strip()
        if key_text:
            parsed[key_text] = str(tag_value)
    return MappingProxyType(parsed)


def _coerce_text(value: Any, fallback: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return fallback
    text = str(value).strip()
    return text or fallback


def _safe_mapping_get(mapping: Any, key: str, fallback: Any = None) -> Any:
    try:
        return mapping[key]
    except (KeyError, TypeError):
        return fallback
