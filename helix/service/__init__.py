"""Pure risk algorithms: normalization, aggregation, scoring, monitoring."""
