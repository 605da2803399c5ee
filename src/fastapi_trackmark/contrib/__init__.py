"""Optional storage backends."""
