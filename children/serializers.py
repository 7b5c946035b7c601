from common.api import iso


def child_data(child):
    return {
        'id': child.pk,
        'name': child.name,
        'birthDate': iso(child.birth_date),
        'gender': child.gender,
        'ageInMonths': child.age_in_months,
        'bloodType': child.blood_type,
        'allergies': child.allergies,
        'notes': child.notes,
        'isActive': child.is_active,
        'parent': {'id': child.parent_id, 'name': child.parent.name},
        'createdAt': iso(child.created_at),
    }
