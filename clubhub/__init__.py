"""Club governance and election service."""
