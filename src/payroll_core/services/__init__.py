"""In-process service layer over the domain aggregates."""
