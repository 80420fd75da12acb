"""layerkit top-level commands."""
