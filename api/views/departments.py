"""Department views: listing with counts for everyone, changes for administrators."""

from django.http import JsonResponse

from accounts.models import Department, Role
from accounts.services.departments import (
    create_department,
    delete_department,
    list_departments,
    update_department,
)
from api.decorators import api_view, role_required, token_required
from api.forms import DepartmentForm, json_data, validated
from api.serializers import department_to_dict


@api_view("GET", "POST")
@token_required
def department_list_view(request):
    if request.method == "GET":
        data = [department_to_dict(department) for department in list_departments()]
        return JsonResponse({"data": data})

    data = validated(DepartmentForm(json_data(request)))
    department = create_department(request.user, data["name"], data["description"])
    return JsonResponse(department_to_dict(department), status=201)


@api_view("PUT", "DELETE")
@token_required
@role_required(Role.SUPERUSER, Role.ADMIN)
def department_detail_view(request, pk):
    department = Department.objects.get(pk=pk)

    if request.method == "DELETE":
        delete_department(request.user, department)
        return JsonResponse({"message": "Department deleted."})

    data = validated(DepartmentForm(json_data(request)))
    department = update_department(
        request.user, department, name=data["name"], description=data["description"]
    )
    return JsonResponse(department_to_dict(department))
