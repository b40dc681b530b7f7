"""folio - post edit reconciliation: image diffing, asset promotion, atomic commits."""
