"""Console interface for playing and simulating 101 matches."""
