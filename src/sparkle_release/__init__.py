"""Package, sign and publish macOS app releases for Sparkle."""

__version__ = "1.0.0"
