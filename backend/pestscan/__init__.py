"""FarmCare PestScan: crop pest scanning capture pipeline and local inference."""

__version__ = "1.0.0"
