"""swapwiz - Interactive file-backed swap provisioning for Linux."""

__version__ = "0.1.0"
