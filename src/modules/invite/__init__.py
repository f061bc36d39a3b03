"""Human-in-the-loop invite approval."""
