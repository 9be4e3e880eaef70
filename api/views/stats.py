"""Dashboard statistics and recent activity."""

from django.http import JsonResponse

from api.decorators import api_view, token_required
from api.forms import ActivityForm, StatsForm, validated
from api.serializers import activity_to_dict
from common.services.activity import recent_activity
from documents.services.stats import collect_stats


@api_view("GET")
@token_required
def stats_view(request):
    params = validated(StatsForm(request.GET))
    return JsonResponse(collect_stats(request.user, subject_id=params["userId"]))


@api_view("GET")
@token_required
def activity_view(request):
    params = validated(ActivityForm(request.GET))
    events = recent_activity(limit=params["limit"] or 10, user=request.user)
    return JsonResponse({"data": [activity_to_dict(event) for event in events]})
