"""Knowledge IDE: typed knowledge blocks, their relationship graph and derived views."""

__version__ = "1.0.0"
