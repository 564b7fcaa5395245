"""
Bed occupancy rules.

Read-only checks run before any patient or bed write.  A bed may hold at
most one currently admitted patient; moving a patient onto the bed it
already holds is not a change of occupancy.
"""
from typing import Optional

from wards.exceptions import Conflict, NotFound
from wards.gateway import PersistenceGateway, Record


def validate_target(gateway: PersistenceGateway, care_unit_id, bed_id) -> Record:
    """Resolve ``bed_id`` inside ``care_unit_id`` or raise NotFound."""
    if not care_unit_id or not gateway.find_by_id('care_units', care_unit_id):
        raise NotFound('Care unit not found')
    bed = gateway.find_one('beds', {'id': bed_id, 'care_unit': care_unit_id}) if bed_id else None
    if not bed:
        raise NotFound('Bed not found in this care unit')
    return bed


def check_availability(target_bed: Record, current_bed_id: Optional[str] = None,
                       message: str = 'Selected bed is already occupied') -> None:
    if current_bed_id is not None and str(target_bed['id']) == str(current_bed_id):
        return
    if target_bed.get('occupied'):
        raise Conflict(message)
