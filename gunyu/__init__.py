"""Redis topology parsing and discovery, a stored-segment index, CRC-64 and small utilities."""

__version__ = "0.1.0"