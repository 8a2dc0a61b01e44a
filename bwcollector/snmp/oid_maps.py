"""
OID Constants.

All SNMP OIDs used by the collector are kept here; vendor profiles only
reference them. Table OIDs are column prefixes: append ``.{ifIndex}``.
"""
from __future__ import annotations

# =============================================================================
# SNMPv2-MIB
# =============================================================================

SYS_DESCR = "1.3.6.1.2.1.1.1.0"
SYS_OBJECT_ID = "1.3.6.1.2.1.1.2.0"

# =============================================================================
# IF-MIB ifTable (RFC 2863) - Counter32
# =============================================================================

IF_DESCR = "1.3.6.1.2.1.2.2.1.2"
IF_IN_OCTETS = "1.3.6.1.2.1.2.2.1.10"
IF_OUT_OCTETS = "1.3.6.1.2.1.2.2.1.16"

# =============================================================================
# IF-MIB ifXTable - Counter64 (high capacity)
# =============================================================================

IF_NAME = "1.3.6.1.2.1.31.1.1.1.1"
IF_HC_IN_OCTETS = "1.3.6.1.2.1.31.1.1.1.6"
IF_HC_OUT_OCTETS = "1.3.6.1.2.1.31.1.1.1.10"


def instance(column: str, if_index: int) -> str:
    """Build the instance OID of a table column for one ifIndex."""
    return f"{column}.{if_index}"
