"""SNMP interface bandwidth collector."""

__version__ = "0.1.0"
