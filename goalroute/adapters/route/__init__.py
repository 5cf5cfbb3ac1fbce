"""Route adapters: offline mock router and Mapbox Directions."""
