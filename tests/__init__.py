"""
Flood evacuation backend test suite

Structure:
- unit/: transform math, upstream/geocoder/OSRM clients, report writer, config
- integration/: FastAPI endpoints with the upstream services mocked
"""
