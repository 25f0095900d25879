"""
Housing Kernel

Shared foundation for the tenant-housing rent recognition system:
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging
- Pure domain values (dates, amounts, tenant lifecycle, billing records)
- Snapshot store (SQLAlchemy models and read-only selectors)
"""

__version__ = "0.1.0"
