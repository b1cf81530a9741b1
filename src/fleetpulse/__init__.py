"""fleetpulse package."""
