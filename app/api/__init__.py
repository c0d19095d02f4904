"""HTTP endpoints served alongside the exporter."""
