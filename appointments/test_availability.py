import json
from datetime import date, time
from unittest import mock

from django.contrib.auth import get_user_model
from django.db.models.query import QuerySet
from django.test import TestCase
from django.urls import reverse

from common.exceptions import Conflict, Forbidden, ValidationError
from users.actor import Actor
from appointments import availability
from appointments.booking import claim_slot
from appointments.models import AvailabilitySlot, DoctorSchedule

User = get_user_model()

DAY = date(2030, 5, 6)


class PublishDayTest(TestCase):
    def setUp(self):
        self.doctor_user = User.objects.create_user(
            email='doctor@example.com', password='password', name='Dr. Karim', role='doctor'
        )
        self.doctor = Actor.from_user(self.doctor_user)
        self.parent_user = User.objects.create_user(email='parent@example.com', password='password', name='Amina')

    def _slots(self, *windows):
        return [{'start_time': start, 'end_time': end} for start, end in windows]

    def _times(self, schedule):
        return [(s.start_time, s.end_time, s.is_booked) for s in schedule.slots.order_by('start_time')]

    def test_creates_day_with_slots(self):
        schedule, created = availability.publish_day(
            self.doctor, DAY, self._slots(('09:00', '09:30'), ('08:00', '08:30'))
        )

        self.assertTrue(created)
        self.assertTrue(schedule.is_available)
        self.assertEqual(self._times(schedule), [
            (time(8, 0), time(8, 30), False),
            (time(9, 0), time(9, 30), False),
        ])

    def test_republish_replaces_free_slots(self):
        availability.publish_day(self.doctor, DAY, self._slots(('08:00', '08:30'), ('09:00', '09:30')))
        schedule, created = availability.publish_day(self.doctor, DAY, self._slots(('10:00', '10:30')))

        self.assertFalse(created)
        self.assertEqual(DoctorSchedule.objects.count(), 1)
        self.assertEqual(self._times(schedule), [(time(10, 0), time(10, 30), False)])

    def test_republish_keeps_booked_slots(self):
        schedule, _ = availability.publish_day(self.doctor, DAY, self._slots(('08:00', '08:30'), ('09:00', '09:30')))
        booked = schedule.slots.get(start_time=time(8, 0))
        claim_slot(schedule.pk, booked.pk, self.parent_user.pk)

        # Resubmitting the booked window merges with it
        schedule, _ = availability.publish_day(self.doctor, DAY, self._slots(('08:00', '08:30'), ('11:00', '11:30')))

        self.assertEqual(self._times(schedule), [
            (time(8, 0), time(8, 30), True),
            (time(11, 0), time(11, 30), False),
        ])
        self.assertTrue(AvailabilitySlot.objects.filter(pk=booked.pk, booked_by=self.parent_user).exists())

    def test_republish_locks_the_day_slots(self):
        schedule, _ = availability.publish_day(self.doctor, DAY, self._slots(('08:00', '08:30')))
        locked = []
        select_for_update = QuerySet.select_for_update

        def recording(qs, *args, **kwargs):
            locked.append(qs.model)
            return select_for_update(qs, *args, **kwargs)

        with mock.patch.object(QuerySet, 'select_for_update', autospec=True, side_effect=recording):
            availability.publish_day(self.doctor, DAY, self._slots(('10:00', '10:30')))

        self.assertIn(AvailabilitySlot, locked)
        self.assertEqual(self._times(schedule), [(time(10, 0), time(10, 30), False)])

    def test_republish_only_deletes_slots_it_saw_free(self):
        schedule, _ = availability.publish_day(self.doctor, DAY, self._slots(('08:00', '08:30')))
        slot = schedule.slots.get()
        select_for_update = QuerySet.select_for_update

        def book_after_read(qs, *args, **kwargs):
            rows = select_for_update(qs, *args, **kwargs)
            if qs.model is AvailabilitySlot:
                rows = list(rows)
                # A parent books the slot right after the day was read
                claim_slot(schedule.pk, slot.pk, self.parent_user.pk)
            return rows

        with mock.patch.object(QuerySet, 'select_for_update', autospec=True, side_effect=book_after_read):
            availability.publish_day(self.doctor, DAY, self._slots(('10:00', '10:30')))

        self.assertEqual(self._times(schedule), [
            (time(8, 0), time(8, 30), True),
            (time(10, 0), time(10, 30), False),
        ])
        self.assertTrue(AvailabilitySlot.objects.filter(pk=slot.pk, booked_by=self.parent_user).exists())

    def test_overlapping_a_booked_slot_is_a_conflict(self):
        schedule, _ = availability.publish_day(self.doctor, DAY, self._slots(('08:00', '08:30')))
        claim_slot(schedule.pk, schedule.slots.get().pk, self.parent_user.pk)

        with self.assertRaises(Conflict):
            availability.publish_day(self.doctor, DAY, self._slots(('08:15', '08:45')))
        self.assertEqual(schedule.slots.count(), 1)

    def test_rejects_bad_windows(self):
        with self.assertRaises(ValidationError):
            availability.publish_day(self.doctor, DAY, self._slots(('09:00', '09:00')))
        with self.assertRaises(ValidationError):
            availability.publish_day(self.doctor, DAY, self._slots(('09:00', '10:00'), ('09:30', '10:30')))
        with self.assertRaises(ValidationError):
            availability.publish_day(self.doctor, DAY, [{'start_time': 'nine'}])
        self.assertFalse(DoctorSchedule.objects.exists())

    def test_only_doctors_publish(self):
        with self.assertRaises(Forbidden):
            availability.publish_day(Actor.from_user(self.parent_user), DAY, [])

    def test_add_slots(self):
        schedule, _ = availability.publish_day(self.doctor, DAY, self._slots(('08:00', '08:30')))
        availability.add_slots(self.doctor, schedule.pk, self._slots(('08:30', '09:00')))
        self.assertEqual(schedule.slots.count(), 2)

        with self.assertRaises(ValidationError):
            availability.add_slots(self.doctor, schedule.pk, self._slots(('08:45', '09:15')))

    def test_add_slots_is_owner_only(self):
        other = Actor.from_user(User.objects.create_user(
            email='other@example.com', password='password', name='Dr. Other', role='doctor'
        ))
        schedule, _ = availability.publish_day(self.doctor, DAY, [])
        with self.assertRaises(Forbidden):
            availability.add_slots(other, schedule.pk, self._slots(('08:00', '08:30')))


class AvailabilityQueryTest(TestCase):
    def setUp(self):
        self.parent = User.objects.create_user(email='parent@example.com', password='password', name='Amina')
        self.busy = User.objects.create_user(email='busy@example.com', password='password', name='Dr. Busy', role='doctor')
        self.free = User.objects.create_user(email='free@example.com', password='password', name='Dr. Free', role='doctor')

        busy_day, _ = availability.publish_day(
            Actor.from_user(self.busy), DAY, [{'start_time': '08:00', 'end_time': '08:30'}]
        )
        claim_slot(busy_day.pk, busy_day.slots.get().pk, self.parent.pk)
        self.free_day, _ = availability.publish_day(
            Actor.from_user(self.free), DAY,
            [{'start_time': '08:00', 'end_time': '08:30'}, {'start_time': '09:00', 'end_time': '09:30'}]
        )

    def test_available_doctors_lists_only_doctors_with_free_slots(self):
        schedules = list(availability.available_doctors(DAY))

        self.assertEqual([s.doctor_id for s in schedules], [self.free.pk])
        self.assertEqual(schedules[0].free_slots, 2)
        self.assertEqual(schedules[0].total_slots, 2)
        self.assertEqual(len(schedules[0].available_slots), 2)

    def test_unavailable_day_is_hidden(self):
        availability.publish_day(Actor.from_user(self.free), DAY, is_available=False)

        self.assertEqual(list(availability.available_doctors(DAY)), [])
        self.assertEqual(list(availability.available_slots(self.free.pk, DAY)), [])

    def test_available_slots(self):
        slots = availability.available_slots(self.free.pk, DAY)
        self.assertEqual([s.start_time for s in slots], [time(8, 0), time(9, 0)])
        self.assertEqual(list(availability.available_slots(self.busy.pk, DAY)), [])

    def test_my_schedules_defaults_to_upcoming_days(self):
        past, _ = availability.publish_day(Actor.from_user(self.free), date(2020, 1, 1), [])
        mine = availability.my_schedules(Actor.from_user(self.free), today=date(2030, 1, 1))
        self.assertEqual([s.pk for s in mine], [self.free_day.pk])

        everything = availability.doctor_schedules(self.free.pk)
        self.assertEqual([s.pk for s in everything], [past.pk, self.free_day.pk])

    def test_available_endpoint(self):
        self.client.force_login(self.parent)
        response = self.client.get(reverse('schedule_available'), {'date': DAY.isoformat()})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body), 1)
        self.assertEqual(body[0]['doctor']['name'], 'Dr. Free')
        self.assertEqual(
            [s['startTime'] for s in body[0]['schedule']['availableSlots']], ['08:00', '09:00']
        )

    def test_bad_date_is_400(self):
        self.client.force_login(self.parent)
        response = self.client.get(reverse('schedule_available'), {'date': '06/05/2030'})
        self.assertEqual(response.status_code, 400)


class DeleteDayTest(TestCase):
    def setUp(self):
        self.doctor_user = User.objects.create_user(
            email='doctor@example.com', password='password', name='Dr. Karim', role='doctor'
        )
        self.doctor = Actor.from_user(self.doctor_user)
        self.parent = User.objects.create_user(email='parent@example.com', password='password', name='Amina')
        self.schedule, _ = availability.publish_day(
            self.doctor, DAY, [{'start_time': '08:00', 'end_time': '08:30'}]
        )

    def test_delete_without_bookings(self):
        availability.delete_day(self.doctor, self.schedule.pk)
        self.assertFalse(DoctorSchedule.objects.exists())
        self.assertFalse(AvailabilitySlot.objects.exists())

    def test_delete_with_a_booking_is_a_conflict(self):
        claim_slot(self.schedule.pk, self.schedule.slots.get().pk, self.parent.pk)

        with self.assertRaises(Conflict):
            availability.delete_day(self.doctor, self.schedule.pk)
        self.assertTrue(DoctorSchedule.objects.filter(pk=self.schedule.pk).exists())

    def test_delete_endpoint_reports_conflict_as_400(self):
        claim_slot(self.schedule.pk, self.schedule.slots.get().pk, self.parent.pk)
        self.client.force_login(self.doctor_user)

        response = self.client.delete(reverse('schedule_delete', kwargs={'schedule_id': self.schedule.pk}))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['kind'], 'conflict')

    def test_other_doctor_cannot_delete(self):
        other = Actor.from_user(User.objects.create_user(
            email='other@example.com', password='password', name='Dr. Other', role='doctor'
        ))
        with self.assertRaises(Forbidden):
            availability.delete_day(other, self.schedule.pk)

    def test_publish_endpoint(self):
        self.client.force_login(self.doctor_user)
        response = self.client.post(
            reverse('schedule_publish'),
            json.dumps({
                'date': '2030-05-07',
                'slots': [{'startTime': '14:00', 'endTime': '14:20'}],
                'notes': 'Afternoon only',
            }),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['notes'], 'Afternoon only')
        self.assertEqual([(s['startTime'], s['endTime']) for s in body['slots']], [('14:00', '14:20')])
