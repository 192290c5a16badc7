"""Cross-chain route resolution, quoting and transfer orchestration."""

__version__ = "0.1.0"
