from .constants import SPIKE_VERSION as __version__

__all__ = ["__version__"]
