"""
Shipping Module

Carrier gateways behind one interface. Resolve a configured gateway with
``GatewayFactory.resolve`` and call its operations; every fallible
operation returns a result or a Violation.
"""
