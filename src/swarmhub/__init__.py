"""swarmhub: swarm lifecycle and reputation engine for autonomous agents."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("swarmhub")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
