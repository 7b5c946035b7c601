from django.http import JsonResponse

from common.api import api_view, json_body
from immunization.lifecycle import doses_for_child
from immunization.serializers import dose_data
from . import registry
from .serializers import child_data

# JSON key -> form field
FIELDS = {
    'name': 'name',
    'birthDate': 'birth_date',
    'gender': 'gender',
    'bloodType': 'blood_type',
    'allergies': 'allergies',
    'notes': 'notes',
    'isActive': 'is_active',
}


def _form_data(data):
    return {field: data[key] for key, field in FIELDS.items() if key in data}


@api_view(['GET', 'POST'])
def child_list(request, actor):
    if request.method == 'POST':
        child, doses = registry.register_child(actor, _form_data(json_body(request)))
        return JsonResponse({
            'child': child_data(child),
            'vaccinations': [dose_data(d) for d in doses],
            'vaccinationsCreated': len(doses),
        }, status=201)

    children = registry.list_children(actor)
    return JsonResponse([child_data(c) for c in children], safe=False)


@api_view(['GET', 'PUT', 'DELETE'])
def child_detail(request, actor, child_id):
    if request.method == 'PUT':
        child = registry.update_child(actor, child_id, _form_data(json_body(request)))
        return JsonResponse(child_data(child))

    if request.method == 'DELETE':
        registry.remove_child(actor, child_id)
        return JsonResponse({'status': 'success', 'message': 'Child removed.'})

    child, doses = doses_for_child(actor, child_id)
    payload = child_data(child)
    payload['vaccinations'] = [dose_data(d) for d in doses]
    return JsonResponse(payload)
