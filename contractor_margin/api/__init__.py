"""HTTP surface: versioned REST resources and the tool-call endpoint."""
