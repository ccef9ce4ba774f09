"""Council Chat backend: single-assistant chat and 3-stage council deliberation."""
