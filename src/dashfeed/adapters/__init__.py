"""Adapters: transport, supervision, storage and HTTP surfaces."""
