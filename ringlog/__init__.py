"""Fixed-size binary log records in a ring buffer, with a per-thread logger."""

__version__ = "0.1.0"
__all__ = ["logger", "ring_buffer"]