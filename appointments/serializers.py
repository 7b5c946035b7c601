from common.api import hhmm, iso


def user_summary(user):
    if user is None:
        return None
    return {
        'id': user.pk,
        'name': user.name,
        'phone': user.phone,
        'specialty': user.specialty,
    }


def slot_data(slot):
    return {
        'id': slot.pk,
        'startTime': hhmm(slot.start_time),
        'endTime': hhmm(slot.end_time),
        'isBooked': slot.is_booked,
        'bookedBy': slot.booked_by_id,
    }


def schedule_data(schedule, slots=None):
    slots = schedule.slots.all() if slots is None else slots
    return {
        'id': schedule.pk,
        'doctor': user_summary(schedule.doctor),
        'date': iso(schedule.date),
        'isAvailable': schedule.is_available,
        'notes': schedule.notes,
        'slots': [slot_data(s) for s in slots],
    }


def available_doctor_data(schedule):
    return {
        'doctor': user_summary(schedule.doctor),
        'schedule': {
            'id': schedule.pk,
            'date': iso(schedule.date),
            'availableSlots': [slot_data(s) for s in schedule.available_slots],
            'freeSlots': schedule.free_slots,
            'totalSlots': schedule.total_slots,
        },
    }


def appointment_data(appointment):
    return {
        'id': appointment.pk,
        'child': {
            'id': appointment.child_id,
            'name': appointment.child.name,
            'birthDate': iso(appointment.child.birth_date),
        },
        'parent': {'id': appointment.parent_id, 'name': appointment.parent.name},
        'doctor': user_summary(appointment.doctor),
        'slot': appointment.slot_id,
        'scheduledDate': iso(appointment.scheduled_date),
        'scheduledTime': hhmm(appointment.scheduled_time),
        'status': appointment.status,
        'type': appointment.type,
        'vaccines': [{'id': v.pk, 'name': v.name} for v in appointment.vaccines.all()],
        'notes': appointment.notes,
        'rejectionReason': appointment.rejection_reason,
        'createdAt': iso(appointment.created_at),
    }
