"""An emulator for the original monochrome handheld game console."""

__version__ = "0.1.0"