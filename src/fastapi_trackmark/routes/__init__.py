"""HTTP routes of the bookmark router."""
