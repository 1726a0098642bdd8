"""Ranking and player-stats aggregation engine for multi-game tournaments."""
