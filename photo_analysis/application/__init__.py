"""Application layer: scheduling, stats and the engine facade."""
