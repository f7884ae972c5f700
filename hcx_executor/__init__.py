"""HCX Executor: orchestrates HCX Connector and HCX Cloud configuration changes"""

__version__ = "1.0.0"
