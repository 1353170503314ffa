"""Version information for sigrok-text-output."""

__version__ = "0.3.0"
PACKAGE_STRING = f"sigrok-text-output {__version__}"
