"""Infrastructure watchdog: mains power, internet and camera health with router power-cycling."""

__version__ = "0.6.0"
