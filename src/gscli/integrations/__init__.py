"""Google OAuth credential lifecycle and read-only API clients."""
