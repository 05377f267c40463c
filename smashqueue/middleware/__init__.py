"""HTTP middleware and instrumentation."""
