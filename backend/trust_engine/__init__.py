"""Trust & safety engine: report intake, review queue and enforcement."""
