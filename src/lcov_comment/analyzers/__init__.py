"""Coverage analysis over parsed reports."""
