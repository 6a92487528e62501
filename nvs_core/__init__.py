"""Core install engine for nvs, the Neovim version manager."""

from .cancellation import CancelToken
from .config import NvsConfig, load_config
from .errors import ConfigError, LockTimeoutError, NvsError, OperationCancelledError
from .locking import FileLock

__all__ = [
    "CancelToken",
    "ConfigError",
    "FileLock",
    "LockTimeoutError",
    "NvsConfig",
    "NvsError",
    "OperationCancelledError",
    "__version__",
    "load_config",
]

__version__ = "0.1.0"
