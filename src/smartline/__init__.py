"""Trip orchestration and pricing engine for the Smartline ride platform."""

__version__ = "0.1.0"
