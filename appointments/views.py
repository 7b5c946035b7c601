from django.http import JsonResponse
from django.utils import timezone

from common.api import api_view, date_param, json_body
from . import availability, booking, workflow
from .serializers import (
    appointment_data, available_doctor_data, schedule_data, slot_data
)


# Schedules

def _slots(raw_slots):
    """Map {startTime, endTime} entries onto the slot form fields."""
    if not isinstance(raw_slots, list):
        return raw_slots
    return [
        {'start_time': s.get('startTime'), 'end_time': s.get('endTime')} if isinstance(s, dict) else s
        for s in raw_slots
    ]


@api_view(['GET'])
def available_doctors(request, actor):
    date = date_param(request.GET.get('date')) or timezone.localdate()
    schedules = availability.available_doctors(date)
    return JsonResponse([available_doctor_data(s) for s in schedules], safe=False)


@api_view(['GET'])
def my_schedule(request, actor):
    schedules = availability.my_schedules(
        actor,
        start=date_param(request.GET.get('startDate'), 'startDate'),
        end=date_param(request.GET.get('endDate'), 'endDate'),
    )
    return JsonResponse([schedule_data(s) for s in schedules], safe=False)


@api_view(['GET'])
def doctor_schedule(request, actor, doctor_id):
    schedules = availability.doctor_schedules(
        doctor_id,
        start=date_param(request.GET.get('startDate'), 'startDate'),
        end=date_param(request.GET.get('endDate'), 'endDate'),
    )
    return JsonResponse([schedule_data(s) for s in schedules], safe=False)


@api_view(['POST'])
def publish_schedule(request, actor):
    data = json_body(request)
    schedule, created = availability.publish_day(
        actor,
        date_param(data.get('date'), required=True),
        slots=_slots(data.get('slots')),
        is_available=data.get('isAvailable'),
        notes=data.get('notes'),
    )
    schedule = availability.get_schedule(schedule.pk)
    return JsonResponse(schedule_data(schedule), status=201 if created else 200)


@api_view(['POST'])
def add_slots(request, actor, schedule_id):
    data = json_body(request)
    schedule = availability.add_slots(actor, schedule_id, _slots(data.get('slots')))
    return JsonResponse(schedule_data(schedule))


@api_view(['DELETE'])
def delete_schedule(request, actor, schedule_id):
    availability.delete_day(actor, schedule_id)
    return JsonResponse({'status': 'success', 'message': 'Schedule deleted.'})


@api_view(['POST', 'DELETE'])
def slot_booking(request, actor, schedule_id, slot_id):
    if request.method == 'DELETE':
        slot = booking.release_slot(actor, schedule_id, slot_id)
        return JsonResponse({'status': 'success', 'slot': slot_data(slot)})

    data = json_body(request)
    details = {
        'type': data.get('type'),
        'vaccines': data.get('vaccines') or [],
        'notes': data.get('notes', ''),
    }
    _, appointment = booking.book_slot(
        actor, schedule_id, slot_id, child_id=data.get('childId'), details=details
    )
    payload = schedule_data(availability.get_schedule(schedule_id))
    if appointment is not None:
        payload['appointment'] = appointment_data(workflow.get_appointment(actor, appointment.pk))
    return JsonResponse(payload)


# Appointments

def _appointment_request(data):
    return {
        'child': data.get('childId'),
        'schedule': data.get('scheduleId'),
        'slot': data.get('slotId'),
        'scheduled_date': data.get('scheduledDate'),
        'scheduled_time': data.get('scheduledTime'),
        'type': data.get('type'),
        'vaccines': data.get('vaccines') or [],
        'notes': data.get('notes', ''),
    }


@api_view(['GET', 'POST'])
def appointment_list(request, actor):
    if request.method == 'POST':
        appointment = workflow.request_appointment(actor, _appointment_request(json_body(request)))
        return JsonResponse(appointment_data(appointment), status=201)

    appointments = workflow.list_appointments(actor)
    return JsonResponse([appointment_data(a) for a in appointments], safe=False)


@api_view(['GET'])
def pending_appointments(request, actor):
    appointments = workflow.pending_appointments(actor)
    return JsonResponse([appointment_data(a) for a in appointments], safe=False)


@api_view(['GET'])
def today_appointments(request, actor):
    appointments = workflow.today_appointments(actor)
    return JsonResponse([appointment_data(a) for a in appointments], safe=False)


@api_view(['GET', 'PUT', 'DELETE'])
def appointment_detail(request, actor, appointment_id):
    if request.method == 'PUT':
        data = json_body(request)
        appointment = workflow.apply_update(actor, appointment_id, {
            'status': data.get('status'),
            'slot': data.get('slotId'),
            'scheduled_date': data.get('scheduledDate'),
            'scheduled_time': data.get('scheduledTime'),
            'rejection_reason': data.get('rejectionReason', ''),
            'notes': data.get('notes', ''),
        })
        return JsonResponse(appointment_data(appointment))

    if request.method == 'DELETE':
        data = json_body(request)
        appointment = workflow.cancel_appointment(actor, appointment_id, reason=data.get('reason', ''))
        return JsonResponse({'status': 'success', 'appointment': appointment_data(appointment)})

    return JsonResponse(appointment_data(workflow.get_appointment(actor, appointment_id)))
