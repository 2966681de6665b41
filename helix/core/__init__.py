"""Cross-cutting concerns: configuration, logging, metrics, retry and wiring."""
