"""ownstak — command-line client for the OwnStak deployment platform.

Resolves organization/project/environment slugs with their permissions,
creates deployments, and shapes compute invocation outcomes into proxy
responses.
"""

from ownstak.version import __version__

__all__: list[str] = ["__version__"]
