"""User management views (ADMIN and SUPERUSER only)."""

from django.http import JsonResponse

from accounts.models import Role, User
from accounts.services.departments import require_department
from accounts.services.users import (
    create_user,
    delete_user,
    list_users,
    update_user,
)
from api.decorators import api_view, role_required, token_required
from api.forms import (
    PageForm,
    UserCreateForm,
    UserUpdateForm,
    json_data,
    provided,
    validated,
)
from api.serializers import page_to_dict, user_to_dict


def _department_or_none(name):
    return require_department(name) if name else None


@api_view("GET", "POST")
@token_required
@role_required(Role.SUPERUSER, Role.ADMIN)
def user_list_view(request):
    if request.method == "GET":
        params = validated(PageForm(request.GET))
        result = list_users(page=params["page"] or 1, limit=params["limit"] or 10)
        return JsonResponse(page_to_dict(result, user_to_dict))

    data = validated(UserCreateForm(json_data(request)))
    user = create_user(
        request.user,
        username=data["username"],
        email=data["email"],
        password=data["password"],
        role=data["role"] or Role.USER,
        department=_department_or_none(data["department"]),
        first_name=data["firstName"],
        last_name=data["lastName"],
    )
    return JsonResponse(user_to_dict(user), status=201)


@api_view("PATCH", "DELETE")
@token_required
@role_required(Role.SUPERUSER, Role.ADMIN)
def user_detail_view(request, pk):
    user = User.objects.select_related("department").get(pk=pk)

    if request.method == "DELETE":
        delete_user(request.user, user)
        return JsonResponse({"message": "User deleted."})

    data = json_data(request)
    form = UserUpdateForm(data)
    changes = provided(form, data, UserUpdateForm.FIELD_MAP)
    if "department" in changes:
        changes["department"] = _department_or_none(changes["department"])
    user = update_user(
        request.user, user, changes, password=form.cleaned_data["password"]
    )
    return JsonResponse(user_to_dict(user))
