"""InstallForge — compile declarative install recipes into shell installers."""

__version__ = "0.1.0"
