"""Business-side command handling: dispatch and the service command family."""
