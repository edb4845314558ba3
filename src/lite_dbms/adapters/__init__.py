"""Adapters connecting the engine to the outside world.

Inbound adapters (statement parser, REST API) drive the application;
outbound adapters (file storage) implement outbound ports.
"""
