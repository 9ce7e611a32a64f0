"""Game primitives, rules and adjudication."""
