"""HTTP helpers shared by Account Core blueprints."""
