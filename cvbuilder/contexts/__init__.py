"""Domain contexts for cvbuilder."""
