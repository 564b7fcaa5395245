"""Ward management application.

Care units, beds, patients, staff and the hospital logo, exposed as a
JSON API.  Bed occupancy rules live in :mod:`wards.services`.
"""
