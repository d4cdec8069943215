# Shared common library for the stadium reservation services.
# Authentication, permissions, exception handling, caching and other
# components reused by every service.

__version__ = "1.0.0"
