"""OrderQueue - offline-resilient submission queue for order mutations."""

__version__ = "0.1.0"
