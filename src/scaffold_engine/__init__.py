"""scaffold-engine — spec store and idempotent fragment merging for generators."""

__version__ = "0.1.0"
