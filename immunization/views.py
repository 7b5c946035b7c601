from django.http import JsonResponse

from common.api import api_view, json_body
from . import catalog, lifecycle, stats
from .serializers import dose_data, stats_data, vaccine_data


# Vaccines

@api_view(['GET', 'POST'])
def vaccine_list(request, actor):
    if request.method == 'POST':
        data = json_body(request)
        vaccine = catalog.create_vaccine(actor, {
            'name': data.get('name'),
            'description': data.get('description', ''),
            'recommended_ages': data.get('recommendedAges'),
            'total_doses': data.get('totalDoses'),
            'is_mandatory': data.get('isMandatory', True),
            'side_effects': data.get('sideEffects', ''),
            'contraindications': data.get('contraindications', ''),
        })
        return JsonResponse(vaccine_data(vaccine), status=201)

    return JsonResponse([vaccine_data(v) for v in catalog.active_vaccines()], safe=False)


@api_view(['GET', 'DELETE'])
def vaccine_detail(request, actor, vaccine_id):
    if request.method == 'DELETE':
        vaccine = catalog.deactivate_vaccine(actor, vaccine_id)
        return JsonResponse({'status': 'success', 'vaccine': vaccine_data(vaccine)})

    return JsonResponse(vaccine_data(catalog.get_vaccine(vaccine_id)))


# Vaccinations

@api_view(['GET'])
def child_vaccinations(request, actor, child_id):
    _, doses = lifecycle.doses_for_child(actor, child_id)
    return JsonResponse([dose_data(d) for d in doses], safe=False)


@api_view(['GET'])
def upcoming_vaccinations(request, actor):
    doses = lifecycle.upcoming_doses(actor)
    return JsonResponse([dose_data(d, with_child=True) for d in doses], safe=False)


@api_view(['GET'])
def delayed_vaccinations(request, actor):
    doses = lifecycle.delayed_doses(actor)
    return JsonResponse([dose_data(d, with_child=True) for d in doses], safe=False)


@api_view(['GET'])
def vaccination_stats(request, actor):
    return JsonResponse(stats_data(stats.dose_stats(actor)))


@api_view(['PUT'])
def update_vaccination(request, actor, dose_id):
    data = json_body(request)
    dose = lifecycle.apply_status_update(actor, dose_id, {
        'status': data.get('status'),
        'administered_date': data.get('administeredDate'),
        'notes': data.get('notes', ''),
        'batch_number': data.get('batchNumber', ''),
    })
    return JsonResponse(dose_data(dose))
