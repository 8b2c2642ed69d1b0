"""HTTP server for the solver session console."""
