"""Domain layer: job state machine, analysis results and their validation."""
