"""Hearth: community hub API (members, events, resources, messaging)."""
