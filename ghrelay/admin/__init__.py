"""Operator tooling for the relay database."""
