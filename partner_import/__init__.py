"""Partner feed import: reconciles partner stock feeds with the shop catalog."""

__version__ = "1.0.0"
