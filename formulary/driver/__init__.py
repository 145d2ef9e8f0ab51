"""Run orchestration: rendering, scheduling, retrying and persistence."""
