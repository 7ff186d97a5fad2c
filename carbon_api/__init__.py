"""Carbon Footprint API — mocked dish carbon-footprint estimation service.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
