"""Result type shared by outbound provider clients."""

from dataclasses import dataclass


@dataclass
class ProviderResult:
    succeeded: bool
    message: str
