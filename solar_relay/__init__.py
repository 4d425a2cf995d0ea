"""Session-holding relay in front of the FusionSolar third-party API."""
