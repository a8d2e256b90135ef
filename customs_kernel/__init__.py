"""
Customs Kernel

Shared foundation for the customs declaration reconciliation engine:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Declaration input records and the injectable clock
- Read-only persistence layer (ORM models and selectors)
"""

__version__ = "0.1.0"
