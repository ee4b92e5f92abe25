"""AI interview pipeline: prompts, coercion, state machine and evaluation."""
