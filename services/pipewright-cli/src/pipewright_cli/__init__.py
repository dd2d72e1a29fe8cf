"""pipewright command line interface."""
