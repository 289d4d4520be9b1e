"""Console and character-display output of GPS fixes."""
