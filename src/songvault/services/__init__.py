"""Application services built on the data layer."""
