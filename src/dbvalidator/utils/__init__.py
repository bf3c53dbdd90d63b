"""
Utility modules for the dual-database validator

Provides:
- database_types: dialect enumeration (placeholders, quoting, column casing)
- sql_safety: identifier validation and quoting
- logging: structured logging setup
- tracing: OpenTelemetry spans
- metrics: Prometheus reconciliation metrics
"""

__all__ = ["database_types", "sql_safety", "logging", "tracing", "metrics"]
