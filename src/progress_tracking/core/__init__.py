"""Progress accounting core."""
