"""Pure lifecycle, pricing and policy rules."""
