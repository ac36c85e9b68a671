"""
Pure pipeline logic. The orchestrator is imported from
``assetsync.core.orchestrator`` directly since it depends on the services.
"""

from .credentials import resolve_credentials, resolve_input, describe_credentials, redact
from .progress import ProgressParser, RegexProgressParser, GitProgressParser
from .relocator import Relocator

__all__ = [
    "resolve_credentials",
    "resolve_input",
    "describe_credentials",
    "redact",
    "ProgressParser",
    "RegexProgressParser",
    "GitProgressParser",
    "Relocator",
]
