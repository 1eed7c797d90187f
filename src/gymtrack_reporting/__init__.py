"""GymTrack reporting: aggregation of check-in, workout and membership records."""
