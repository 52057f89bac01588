"""Layout resolution and generation engine."""
