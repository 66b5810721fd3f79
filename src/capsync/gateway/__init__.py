"""Gateways wrapping external systems (git, clock).

Each gateway has an abstract interface (abc), a production implementation
(real) and an in-memory implementation for tests (fake).
"""
