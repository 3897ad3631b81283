"""View derivation, selection and background refresh services."""
