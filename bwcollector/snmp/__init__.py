"""
SNMP acquisition layer.

Architecture:
    AsyncSnmpEngine  - pysnmp async wrapper (get)
    MockSnmpEngine   - synthetic counters, same interface
    vendor_profiles  - closed registry of vendor OID sets and counter widths
    VendorResolver   - per-device profile resolution, cached
    decoder          - raw wire value -> exact unsigned int
"""
