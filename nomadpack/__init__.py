"""Registry cache, pack loading, error contexts and a terminal spinner for Nomad job packs."""

__version__ = "0.0.1"