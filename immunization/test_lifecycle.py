import json
from datetime import date

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from children.models import Child
from common.exceptions import Forbidden, InvalidTransition, NotFound
from notifications.models import Notification
from users.actor import Actor
from immunization import lifecycle
from immunization.models import DoseRecord, Vaccine

User = get_user_model()


class DoseLifecycleTest(TestCase):
    def setUp(self):
        self.parent_user = User.objects.create_user(email='parent@example.com', password='password', name='Amina')
        self.doctor_user = User.objects.create_user(
            email='doctor@example.com', password='password', name='Dr. Karim', role='doctor'
        )
        self.parent = Actor.from_user(self.parent_user)
        self.doctor = Actor.from_user(self.doctor_user)

        self.child = Child.objects.create(
            name='Yanis', birth_date=date(2024, 1, 1), gender='male', parent=self.parent_user
        )
        self.vaccine = Vaccine.objects.create(name='Pneumococcal', recommended_ages=[2, 4, 12], total_doses=3)
        self.dose = DoseRecord.objects.create(
            child=self.child, vaccine=self.vaccine, dose_number=1, scheduled_date=date(2024, 3, 1)
        )

    def test_overdue_scan_marks_past_doses_delayed(self):
        count = lifecycle.mark_overdue(today=date(2024, 3, 2))

        self.dose.refresh_from_db()
        self.assertEqual(count, 1)
        self.assertEqual(self.dose.status, DoseRecord.DELAYED)

    def test_overdue_scan_is_idempotent_and_forward_only(self):
        lifecycle.mark_overdue(today=date(2024, 3, 2))
        self.assertEqual(lifecycle.mark_overdue(today=date(2024, 3, 2)), 0)
        # An earlier reference day never reverts the record
        lifecycle.mark_overdue(today=date(2024, 1, 1))

        self.dose.refresh_from_db()
        self.assertEqual(self.dose.status, DoseRecord.DELAYED)

    def test_overdue_scan_ignores_doses_due_today(self):
        self.assertEqual(lifecycle.mark_overdue(today=date(2024, 3, 1)), 0)
        self.dose.refresh_from_db()
        self.assertEqual(self.dose.status, DoseRecord.SCHEDULED)

    def test_overdue_scan_never_assigns_missed(self):
        lifecycle.mark_overdue(today=date(2030, 1, 1))
        self.assertFalse(DoseRecord.objects.filter(status=DoseRecord.MISSED).exists())

    def test_complete_dose(self):
        dose = lifecycle.complete_dose(self.doctor, self.dose.pk, administered_date=date(2024, 3, 3), batch_number='LOT-42')

        self.assertEqual(dose.status, DoseRecord.COMPLETED)
        self.assertEqual(dose.administered_date, date(2024, 3, 3))
        self.assertEqual(dose.doctor_id, self.doctor_user.pk)
        self.assertEqual(dose.batch_number, 'LOT-42')

    def test_complete_delayed_dose(self):
        lifecycle.mark_overdue(today=date(2024, 4, 1))
        dose = lifecycle.complete_dose(self.doctor, self.dose.pk, administered_date=date(2024, 4, 1))
        self.assertEqual(dose.status, DoseRecord.COMPLETED)

    def test_completing_twice_fails_and_leaves_record_unchanged(self):
        lifecycle.complete_dose(self.doctor, self.dose.pk, administered_date=date(2024, 3, 3))

        with self.assertRaises(InvalidTransition):
            lifecycle.complete_dose(self.doctor, self.dose.pk, administered_date=date(2024, 5, 5))

        self.dose.refresh_from_db()
        self.assertEqual(self.dose.status, DoseRecord.COMPLETED)
        self.assertEqual(self.dose.administered_date, date(2024, 3, 3))

    def test_completion_notifies_parent(self):
        lifecycle.complete_dose(self.doctor, self.dose.pk)

        notification = Notification.objects.get(user=self.parent_user)
        self.assertEqual(notification.kind, 'confirmation')
        self.assertEqual(notification.related_child_id, self.child.pk)
        self.assertIn('Pneumococcal', notification.message)

    def test_parent_cannot_complete(self):
        with self.assertRaises(Forbidden):
            lifecycle.complete_dose(self.parent, self.dose.pk)

    def test_unknown_dose(self):
        with self.assertRaises(NotFound):
            lifecycle.complete_dose(self.doctor, 999999)

    def test_missed_and_cancelled_are_terminal(self):
        lifecycle.mark_missed(self.doctor, self.dose.pk, notes='Family moved away')
        with self.assertRaises(InvalidTransition):
            lifecycle.complete_dose(self.doctor, self.dose.pk)
        with self.assertRaises(InvalidTransition):
            lifecycle.cancel_dose(self.doctor, self.dose.pk)

        self.dose.refresh_from_db()
        self.assertEqual(self.dose.status, DoseRecord.MISSED)
        self.assertIsNone(self.dose.administered_date)

    def test_status_update_rejects_automatic_states(self):
        for status in ('scheduled', 'delayed'):
            with self.assertRaises(InvalidTransition):
                lifecycle.apply_status_update(self.doctor, self.dose.pk, {'status': status})

    def test_child_dose_list_sweeps_first(self):
        _, doses = lifecycle.doses_for_child(self.parent, self.child.pk, today=date(2024, 6, 1))
        self.assertEqual([d.status for d in doses], [DoseRecord.DELAYED])

    def test_delayed_and_upcoming_lists(self):
        DoseRecord.objects.create(
            child=self.child, vaccine=self.vaccine, dose_number=2, scheduled_date=date(2024, 5, 1)
        )
        DoseRecord.objects.create(
            child=self.child, vaccine=self.vaccine, dose_number=3, scheduled_date=date(2025, 1, 1)
        )
        today = date(2024, 4, 15)

        delayed = list(lifecycle.delayed_doses(self.doctor, today=today))
        upcoming = list(lifecycle.upcoming_doses(self.doctor, today=today))

        self.assertEqual([d.dose_number for d in delayed], [1])
        self.assertEqual([d.dose_number for d in upcoming], [2])

    def test_staff_lists_are_not_for_parents(self):
        with self.assertRaises(Forbidden):
            lifecycle.delayed_doses(self.parent)


class VaccinationApiTest(TestCase):
    def setUp(self):
        self.parent = User.objects.create_user(email='parent@example.com', password='password', name='Amina')
        self.doctor = User.objects.create_user(
            email='doctor@example.com', password='password', name='Dr. Karim', role='doctor'
        )
        child = Child.objects.create(name='Yanis', birth_date=date(2024, 1, 1), gender='male', parent=self.parent)
        vaccine = Vaccine.objects.create(name='BCG', recommended_ages=[0], total_doses=1)
        self.dose = DoseRecord.objects.create(
            child=child, vaccine=vaccine, dose_number=1, scheduled_date=date(2024, 1, 1)
        )
        self.url = reverse('update_vaccination', kwargs={'dose_id': self.dose.pk})

    def _put(self, data):
        return self.client.put(self.url, json.dumps(data), content_type='application/json')

    def test_complete_over_http(self):
        self.client.force_login(self.doctor)
        response = self._put({'status': 'completed', 'administeredDate': '2024-01-02', 'batchNumber': 'B-1'})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['status'], 'completed')
        self.assertEqual(body['administeredDate'], '2024-01-02')

    def test_invalid_transition_is_400(self):
        self.client.force_login(self.doctor)
        self._put({'status': 'completed'})
        response = self._put({'status': 'completed'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['kind'], 'invalid_transition')

    def test_parent_is_forbidden(self):
        self.client.force_login(self.parent)
        response = self._put({'status': 'completed'})

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['kind'], 'forbidden')

    def test_unknown_status_is_validation_error(self):
        self.client.force_login(self.doctor)
        response = self._put({'status': 'teleported'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['kind'], 'validation_error')
        self.assertIn('status', response.json()['errors'])
