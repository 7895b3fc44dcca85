"""daybank - a 200-day savings challenge tracker."""

__version__ = "0.1.0"
