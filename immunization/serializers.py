from common.api import iso


def vaccine_data(vaccine):
    return {
        'id': vaccine.pk,
        'name': vaccine.name,
        'description': vaccine.description,
        'recommendedAges': list(vaccine.recommended_ages),
        'totalDoses': vaccine.total_doses,
        'isMandatory': vaccine.is_mandatory,
        'sideEffects': vaccine.side_effects,
        'contraindications': vaccine.contraindications,
        'isActive': vaccine.is_active,
    }


def dose_data(dose, with_child=False):
    data = {
        'id': dose.pk,
        'child': dose.child_id,
        'vaccine': {'id': dose.vaccine_id, 'name': dose.vaccine.name},
        'doseNumber': dose.dose_number,
        'scheduledDate': iso(dose.scheduled_date),
        'administeredDate': iso(dose.administered_date),
        'status': dose.status,
        'doctor': dose.doctor_id,
        'notes': dose.notes,
        'batchNumber': dose.batch_number,
    }
    if with_child:
        child = dose.child
        data['child'] = {
            'id': child.pk,
            'name': child.name,
            'birthDate': iso(child.birth_date),
            'parent': {'id': child.parent_id, 'name': child.parent.name, 'phone': child.parent.phone},
        }
    return data


def stats_data(stats):
    return {
        'total': stats['total'],
        'scheduled': stats['scheduled'],
        'delayed': stats['delayed'],
        'completed': stats['completed'],
        'missed': stats['missed'],
        'cancelled': stats['cancelled'],
        'completionRate': stats['completion_rate'],
        'totalChildren': stats['total_children'],
        'completedThisMonth': stats['completed_this_month'],
    }
