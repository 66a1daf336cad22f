"""Evidence extractors: turn captured traffic into detection evidence."""
