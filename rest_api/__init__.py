"""FastAPI server side of the event check-in system."""
