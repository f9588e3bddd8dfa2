"""Error classification, sanitization, localization and monitoring pipeline."""
