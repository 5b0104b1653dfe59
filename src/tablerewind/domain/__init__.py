"""Domain layer - classification and recording of dirtied tables."""
