"""commitguard: staged-change review and patching at commit time."""

from commitguard._version import __version__
from commitguard.core.config import GuardConfig, load_config
from commitguard.pipeline import CheckResult, CommitGuard

__all__ = [
    "__version__",
    "CheckResult",
    "CommitGuard",
    "GuardConfig",
    "load_config",
]
