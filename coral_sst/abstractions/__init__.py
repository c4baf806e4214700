"""Value types and boundary interfaces - no processing logic."""
