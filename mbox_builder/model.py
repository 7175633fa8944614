from dataclasses import dataclass
from typing import Optional

DEFAULT_MAX_SLAVES = 4
DEFAULT_TRIAL_TIME = 1440 # minutes


@dataclass(frozen=True)
class Port:
    path: str
    manufacturer: Optional[str] = None


@dataclass(frozen=True)
class Credentials:
    username: Optional[str] = None
    password: Optional[str] = None

    def is_complete(self):
        return bool(self.username) and bool(self.password)


@dataclass
class BuildOptions:
    chip_id: Optional[str] = None
    max_slaves: int = DEFAULT_MAX_SLAVES
    trial_mode: bool = False
    trial_time: int = DEFAULT_TRIAL_TIME


@dataclass
class UploadOptions:
    """Resolved flags of the `upload` command. Filled in during resolution."""
    port: Optional[str] = None
    dir: Optional[str] = None
    lock: Optional[str] = None
    slaves: Optional[int] = None
    webui: bool = False
    trial: Optional[int] = None
    wizard: bool = False

    def build_options(self):
        return BuildOptions(
            chip_id=self.lock or None,
            max_slaves=self.slaves if self.slaves is not None else DEFAULT_MAX_SLAVES,
            trial_mode=self.trial is not None,
            trial_time=self.trial if self.trial is not None else DEFAULT_TRIAL_TIME,
        )
