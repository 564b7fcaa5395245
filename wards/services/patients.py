"""
Patient admission, transfer and discharge.

A patient is *admitted* while ``is_active`` is set and ``discharged_at``
is empty, and an admitted patient holds exactly one occupied bed.  The
gateway only guarantees single-record atomicity, so every workflow below
orders its writes (patient first on admission and discharge, free the
old bed before claiming the new one on transfer) and claims beds with a
conditional write so that two admissions cannot both take the same bed.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from wards.exceptions import Conflict, Inconsistency, InvalidState, NotFound
from wards.gateway import PersistenceGateway, Record, get_gateway
from wards.services.audit import log_action
from wards.services.occupancy import check_availability, validate_target

logger = logging.getLogger(__name__)

PATIENT_FIELDS = (
    'pan', 'name', 'age', 'blood_group', 'gender', 'phone', 'email',
    'address', 'severity', 'symptoms',
)


def _iso(value):
    return value.isoformat() if value else None


def _actor_id(actor):
    return getattr(actor, 'id', None)


class PatientLifecycle:
    def __init__(self, gateway: Optional[PersistenceGateway] = None):
        self.gateway = gateway or get_gateway()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _lookup(self, collection: str, ids: Iterable) -> Dict[Any, Record]:
        ids = {i for i in ids if i}
        if not ids:
            return {}
        return {r['id']: r for r in self.gateway.find_many(collection, {'id__in': list(ids)})}

    def _present(self, patients: List[Record], with_updated_by: bool = False) -> List[dict]:
        units = self._lookup('care_units', (p['care_unit'] for p in patients))
        beds = self._lookup('beds', (p['bed'] for p in patients))
        user_ids = [p['assigned_doctor'] for p in patients] + [p['created_by'] for p in patients]
        if with_updated_by:
            user_ids += [p['updated_by'] for p in patients]
        users = self._lookup('users', user_ids)

        def unit_ref(pk):
            u = units.get(pk)
            return {'id': u['id'], 'careUnit': u['care_unit']} if u else None

        def bed_ref(pk):
            b = beds.get(pk)
            return {'id': b['id'], 'bedName': b['bed_name']} if b else None

        def doctor_ref(pk):
            d = users.get(pk)
            if not d:
                return None
            return {
                'id': d['id'],
                'firstName': d['first_name'],
                'lastName': d['last_name'],
                'username': d['username'],
                'specialization': d['specialization'],
            }

        def user_ref(pk):
            u = users.get(pk)
            return {'id': u['id'], 'username': u['username']} if u else None

        data = []
        for p in patients:
            item = {
                'id': p['id'],
                'pan': p['pan'],
                'name': p['name'],
                'age': p['age'],
                'bloodGroup': p['blood_group'],
                'gender': p['gender'],
                'phone': p['phone'],
                'email': p['email'],
                'address': p['address'],
                'severity': p['severity'],
                'symptoms': p['symptoms'],
                'careUnit': unit_ref(p['care_unit']),
                'bed': bed_ref(p['bed']),
                'assignedDoctor': doctor_ref(p['assigned_doctor']),
                'admittedAt': _iso(p['admitted_at']),
                'dischargedAt': _iso(p['discharged_at']),
                'isActive': p['is_active'],
                'createdBy': user_ref(p['created_by']),
                'createdAt': _iso(p['created_at']),
                'updatedAt': _iso(p['updated_at']),
            }
            if with_updated_by:
                item['updatedBy'] = user_ref(p['updated_by'])
            data.append(item)
        return data

    def list_patients(self) -> List[dict]:
        patients = self.gateway.find_many('patients', {'is_active': True}, order_by=['-created_at'])
        return self._present(patients)

    def list_patients_by_care_unit(self, care_unit_id) -> List[dict]:
        patients = self.gateway.find_many(
            'patients', {'is_active': True, 'care_unit': care_unit_id}, order_by=['-created_at']
        )
        return self._present(patients)

    def get_patient(self, patient_id) -> dict:
        return self._present([self._require_patient(patient_id)], with_updated_by=True)[0]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_patient(self, patient_id) -> Record:
        patient = self.gateway.find_by_id('patients', patient_id)
        if not patient:
            raise NotFound('Patient not found')
        return patient

    def _require_doctor(self, doctor_id) -> Record:
        doctor = self.gateway.find_one('users', {'id': doctor_id, 'is_active': True}) if doctor_id else None
        if not doctor:
            raise NotFound('Assigned doctor not found')
        return doctor

    def _check_pan(self, pan, patient_id=None):
        if not pan:
            return
        other = self.gateway.find_one('patients', {'pan': pan})
        if other and other['id'] != patient_id:
            raise Conflict('PAN already exists')

    def _claim_bed(self, actor, bed_id) -> Optional[Record]:
        return self.gateway.update_if(
            'beds', bed_id, {'occupied': False}, {'occupied': True, 'updated_by': _actor_id(actor)}
        )

    def _free_bed(self, actor, bed_id) -> Optional[Record]:
        return self.gateway.update_by_id('beds', bed_id, {'occupied': False, 'updated_by': _actor_id(actor)})

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------
    def admit_patient(self, actor, data: Dict[str, Any]) -> dict:
        care_unit_id = data.get('care_unit')
        bed = validate_target(self.gateway, care_unit_id, data.get('bed'))
        check_availability(bed)
        self._require_doctor(data.get('assigned_doctor'))
        self._check_pan(data.get('pan'))

        fields = {k: data[k] for k in PATIENT_FIELDS if data.get(k) not in (None, '')}
        fields.update(
            care_unit=care_unit_id,
            bed=bed['id'],
            assigned_doctor=data['assigned_doctor'],
            admitted_at=data.get('admitted_at') or timezone.now(),
            is_active=True,
            created_by=_actor_id(actor),
        )
        patient = self.gateway.create('patients', fields)

        try:
            claimed = self._claim_bed(actor, bed['id'])
        except Exception:
            logger.exception('occupying bed %s failed after creating patient %s', bed['id'], patient['id'])
            self._undo_admission(patient)
            raise
        if not claimed:
            logger.warning('bed %s was taken concurrently; rolling back patient %s', bed['id'], patient['id'])
            self._undo_admission(patient)
            raise Conflict('Selected bed is already occupied')

        log_action(user=actor, action='patient_admit', object_type='patient', object_id=patient['id'],
                   detail={'bed': bed['id'], 'careUnit': care_unit_id}, gateway=self.gateway)
        logger.info('admitted patient %s into bed %s', patient['id'], bed['id'])
        return self._present([patient])[0]

    def _undo_admission(self, patient: Record) -> None:
        try:
            self.gateway.delete_by_id('patients', patient['id'])
        except Exception as exc:
            logger.exception('could not remove patient %s after failed admission', patient['id'])
            raise Inconsistency(
                f"Patient {patient['id']} was created but bed {patient['bed']} could not be occupied"
            ) from exc

    # ------------------------------------------------------------------
    # Update / transfer
    # ------------------------------------------------------------------
    def update_patient(self, actor, patient_id, data: Dict[str, Any]) -> dict:
        data = dict(data)
        current = self._require_patient(patient_id)
        care_unit_id = data.pop('care_unit', None)
        bed_id = data.pop('bed', None)
        admitted = current['is_active'] and not current['discharged_at']

        target_bed = None
        if care_unit_id or bed_id:
            care_unit_id = care_unit_id or current['care_unit']
            target_bed = validate_target(self.gateway, care_unit_id, bed_id or current['bed'])
            check_availability(target_bed, current['bed'], 'Target bed is already occupied')
        moving = target_bed is not None and str(target_bed['id']) != str(current['bed'])

        if data.get('assigned_doctor'):
            self._require_doctor(data['assigned_doctor'])
        if 'pan' in data:
            self._check_pan(data['pan'], current['id'])

        discharging = bool(data.get('discharged_at')) and not current['discharged_at']
        if data.get('discharged_at') or data.get('admitted_at'):
            admitted_at = data.get('admitted_at') or current['admitted_at']
            discharged_at = data.get('discharged_at') or current['discharged_at']
            if admitted_at and discharged_at and discharged_at < admitted_at:
                raise ValidationError({'dischargedAt': ['dischargedAt cannot be before admittedAt']})
        if moving and not admitted:
            raise InvalidState('Only admitted patients can be moved to another bed')
        if moving and discharging:
            raise ValidationError({'bed': ['Cannot move and discharge a patient in one update']})

        if moving:
            self._move(actor, current, target_bed)

        fields = {k: v for k, v in data.items() if v is not None}
        if target_bed is not None:
            fields['care_unit'] = care_unit_id
            fields['bed'] = target_bed['id']
        fields['updated_by'] = _actor_id(actor)
        try:
            updated = self.gateway.update_by_id('patients', patient_id, fields)
        except Exception as exc:
            if not moving:
                raise
            logger.exception('patient %s not updated after moving beds %s -> %s',
                             patient_id, current['bed'], target_bed['id'])
            raise Inconsistency(
                f"Bed {target_bed['id']} was occupied for patient {patient_id} "
                f"but the patient still references bed {current['bed']}"
            ) from exc
        if not updated:
            raise NotFound('Patient not found')

        if discharging:
            self._release_after_discharge(actor, updated)

        log_action(user=actor, action='patient_update', object_type='patient', object_id=patient_id,
                   detail={'fields': sorted(fields), 'moved': moving}, gateway=self.gateway)
        if moving:
            logger.info('moved patient %s from bed %s to bed %s', patient_id, current['bed'], target_bed['id'])
        return self._present([updated], with_updated_by=True)[0]

    def _move(self, actor, current: Record, target_bed: Record) -> None:
        old_bed_id = current['bed']
        self._free_bed(actor, old_bed_id)
        try:
            claimed = self._claim_bed(actor, target_bed['id'])
        except Exception:
            logger.exception('occupying bed %s failed during transfer', target_bed['id'])
            self._restore_bed(actor, old_bed_id, current['id'])
            raise
        if not claimed:
            logger.warning('bed %s was taken concurrently; patient %s stays in %s',
                           target_bed['id'], current['id'], old_bed_id)
            self._restore_bed(actor, old_bed_id, current['id'])
            raise Conflict('Target bed is already occupied')

    def _restore_bed(self, actor, bed_id, patient_id) -> None:
        try:
            restored = self._claim_bed(actor, bed_id)
        except Exception as exc:
            raise Inconsistency(f'Bed {bed_id} of patient {patient_id} could not be re-occupied') from exc
        if not restored:
            raise Inconsistency(f'Bed {bed_id} of patient {patient_id} could not be re-occupied')

    # ------------------------------------------------------------------
    # Discharge / removal
    # ------------------------------------------------------------------
    def discharge_patient(self, actor, patient_id) -> dict:
        patient = self._require_patient(patient_id)
        if patient['discharged_at']:
            raise InvalidState('Patient already discharged')
        now = timezone.now()
        if patient['admitted_at'] and now < patient['admitted_at']:
            raise InvalidState('dischargedAt cannot be before admittedAt')

        updated = self.gateway.update_if(
            'patients', patient_id, {'discharged_at__isnull': True},
            {'discharged_at': now, 'updated_by': _actor_id(actor)},
        )
        if not updated:
            raise InvalidState('Patient already discharged')
        self._release_after_discharge(actor, updated)

        log_action(user=actor, action='patient_discharge', object_type='patient', object_id=patient_id,
                   detail={'bed': updated['bed']}, gateway=self.gateway)
        logger.info('discharged patient %s, freed bed %s', patient_id, updated['bed'])
        return {'message': 'Patient discharged successfully'}

    def _release_after_discharge(self, actor, patient: Record) -> None:
        try:
            freed = self._free_bed(actor, patient['bed'])
        except Exception as exc:
            logger.exception('patient %s discharged but bed %s was not freed', patient['id'], patient['bed'])
            raise Inconsistency(
                f"Patient {patient['id']} was discharged but bed {patient['bed']} is still marked occupied"
            ) from exc
        if not freed:
            logger.warning('bed %s of discharged patient %s no longer exists', patient['bed'], patient['id'])

    def delete_patient(self, actor, patient_id) -> dict:
        # the bed stays reserved until the patient is discharged
        updated = self.gateway.update_by_id(
            'patients', patient_id, {'is_active': False, 'updated_by': _actor_id(actor)}
        )
        if not updated:
            raise NotFound('Patient not found')
        log_action(user=actor, action='patient_delete', object_type='patient', object_id=patient_id,
                   gateway=self.gateway)
        logger.info('removed patient %s', patient_id)
        return {'message': 'Patient deleted successfully'}

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------
    def reconcile_bed_occupancy(self, actor=None, dry_run: bool = False) -> dict:
        """Recompute every bed's ``occupied`` flag from the patients holding it.

        A bed is held by any patient that has not been discharged,
        including removed ones.  Returns the ids of corrected beds and of
        beds held by more than one patient (reported, never changed).
        """
        holders: Dict[Any, List[Any]] = {}
        for p in self.gateway.find_many('patients', {'discharged_at__isnull': True}):
            holders.setdefault(p['bed'], []).append(p['id'])

        corrected, conflicts = [], []
        for bed in self.gateway.find_many('beds', order_by=['id']):
            held = bed['id'] in holders
            if len(holders.get(bed['id'], [])) > 1:
                conflicts.append(bed['id'])
                logger.warning('bed %s is held by patients %s', bed['id'], holders[bed['id']])
            if bool(bed['occupied']) == held:
                continue
            corrected.append(bed['id'])
            if not dry_run:
                fields = {'occupied': held}
                if actor is not None:
                    fields['updated_by'] = _actor_id(actor)
                self.gateway.update_by_id('beds', bed['id'], fields)

        if corrected and not dry_run:
            log_action(user=actor, action='bed_reconcile', object_type='bed',
                       detail={'corrected': corrected}, gateway=self.gateway)
        logger.info('bed reconciliation: %d corrected, %d conflicting%s',
                    len(corrected), len(conflicts), ' (dry run)' if dry_run else '')
        return {'corrected': corrected, 'conflicts': conflicts}
