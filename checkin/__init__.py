"""Client side of the event check-in system."""
