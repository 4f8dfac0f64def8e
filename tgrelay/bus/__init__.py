"""Broker-facing types, codec and pub/sub clients."""
