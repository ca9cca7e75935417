"""Host commands: the side effects controllers delegate to."""

from prism.host.base import Host
from prism.host.github import GitHubHost

__all__ = ["GitHubHost", "Host"]
