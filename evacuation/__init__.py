"""
Evacuation planning around Kerrville, TX

- sites:   shelters, low-water crossings, flood-zone polygons (static)
- geocode: Nominatim address lookup
- routing: nearest-site ranking + OSRM driving routes
- report:  route sheet lines and a minimal one-page PDF writer
"""
