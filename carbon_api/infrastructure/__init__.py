"""Infrastructure — logging setup and HTTP hardening middleware."""
