"""TheraLink therapist booking application."""
