"""
Shipment Manager

Multi-carrier shipping gateway abstraction: one interface for pricing,
creating, tracking and downloading waybills across courier APIs on behalf
of many tenants.
"""
__version__ = "1.0.0"
