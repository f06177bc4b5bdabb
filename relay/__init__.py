"""Local stand-in for the web-rooms relay."""
