"""Terminal power and thermal monitor for Redfish management controllers."""

__version__ = "0.1.0"
