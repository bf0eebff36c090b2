"""accessgraph command-line interface."""
