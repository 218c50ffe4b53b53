"""Fixed values for filters, sorting and export."""
