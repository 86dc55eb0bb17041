"""Pipeline stages: source, infrastructure build, deploy, delivery.

Each stage exposes a small, pure function API; the topology builder calls them
in a fixed order and only the delivery stage is gated by config.
"""
