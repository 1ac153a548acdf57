"""Election status sweeper."""
