"""Track focused i3 windows into an append-only activity log."""

__version__ = "0.1.0"
