"""mcsl - launch a Minecraft server from a verified, catalog-resolved jar."""

__version__ = "0.1.0"
