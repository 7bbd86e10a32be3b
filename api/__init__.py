"""HTTP surface of the MH-Z19 exporter."""
