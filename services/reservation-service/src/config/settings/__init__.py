"""Settings package for Reservation Service."""
