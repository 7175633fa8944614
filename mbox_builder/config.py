"""
Credential store.

GitHub credentials are kept in a JSON document namespaced by the application
version, e.g. ~/.config/mbox-builder/0.3.0.json. Set MBOX_BUILDER_CONFIG_DIR to
keep it somewhere else.
"""
from pathlib import Path
import json
import logging
import os
import sys

from . import __version__
from .model import Credentials

log = logging.getLogger(__name__)

CONFIG_DIR_ENV = "MBOX_BUILDER_CONFIG_DIR"
USERNAME_KEY = "gh_username"
PASSWORD_KEY = "gh_password"


class ConfigError(Exception):
    pass


def default_config_file(version=__version__):
    config_dir = os.environ.get(CONFIG_DIR_ENV)
    if config_dir:
        base = Path(config_dir).expanduser()
    else:
        base = Path.home() / ".config" / "mbox-builder"
    return base / f"{version}.json"


def load_config(config_file):
    if not config_file.exists():
        return {}
    try:
        cfg = json.loads(config_file.read_text())
    except (json.JSONDecodeError, UnicodeDecodeError):
        cfg = None
    except OSError as e:
        raise ConfigError(f"Could not read config file {config_file}: {e}") from e
    if not isinstance(cfg, dict):
        print(f"Warning: Config file {config_file} is corrupted. Using defaults.", file=sys.stderr)
        return {}
    return cfg


def save_config(config_file, cfg):
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(json.dumps(cfg, indent=2))
    except OSError as e:
        raise ConfigError(f"Could not save config file {config_file}: {e}") from e


class CredentialStore:
    """Where the GitHub username/password pair lives between invocations."""

    def store(self, username, password):
        raise NotImplementedError

    def retrieve(self):
        raise NotImplementedError

    def exists(self):
        auth = self.retrieve()
        return bool(auth.username) or bool(auth.password)


class JsonCredentialStore(CredentialStore):

    def __init__(self, path=None):
        self.path = Path(path) if path else default_config_file()

    def store(self, username, password):
        cfg = load_config(self.path)
        # Both fields go out in a single write.
        cfg[USERNAME_KEY] = username
        cfg[PASSWORD_KEY] = password
        save_config(self.path, cfg)
        log.debug("Stored GitHub credentials in %s", self.path)
        return True

    def retrieve(self):
        cfg = load_config(self.path)
        return Credentials(username=cfg.get(USERNAME_KEY), password=cfg.get(PASSWORD_KEY))


class MemoryCredentialStore(CredentialStore):

    def __init__(self, username=None, password=None):
        self._cfg = {}
        if username is not None or password is not None:
            self.store(username, password)

    def store(self, username, password):
        self._cfg = {USERNAME_KEY: username, PASSWORD_KEY: password}
        return True

    def retrieve(self):
        return Credentials(username=self._cfg.get(USERNAME_KEY), password=self._cfg.get(PASSWORD_KEY))
