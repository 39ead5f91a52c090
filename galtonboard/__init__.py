"""Galton board simulation with bitmap rendering, a set-up menu and an SSD1306 driver."""

__version__ = "0.1.0"