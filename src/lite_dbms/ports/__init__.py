"""Ports (interfaces) for the hexagonal architecture.

Inbound ports are implemented by domain services; outbound ports are
implemented by adapters.
"""
