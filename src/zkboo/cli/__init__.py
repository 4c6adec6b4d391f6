"""zkboo command line interface."""
