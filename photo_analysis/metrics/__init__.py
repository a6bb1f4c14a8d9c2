"""In-memory metrics for the analysis job engine."""
