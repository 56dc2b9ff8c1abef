"""MaxCul RF - the version of the transceiver layer."""

__version__ = "0.3.1"
VERSION = __version__
