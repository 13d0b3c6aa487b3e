"""Core building blocks of the timeline fetch run."""
