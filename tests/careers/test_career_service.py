from __future__ import annotations

import pytest

from hotel_academy.careers.model import CareerPath
from hotel_academy.core.exceptions import AuthorizationError, NotFoundError, ValidationError

from fakes import make_org, make_user


@pytest.fixture
def careers(container, repos):
    repos.users.add(make_user("owner"))
    repos.users.add(make_user("staff", current_organization_id="grand", department="front"))
    repos.organizations.add(make_org("grand", "owner"))
    return container.career_service


def test_create_and_list_paths(careers):
    path = careers.create_path(
        actor_id="owner",
        organization_id="grand",
        title="Resepsiyon Şefi",
        department="front",
        course_ids=["c1", "c2"],
    )

    assert careers.get_path(path.path_id).course_ids == ["c1", "c2"]
    assert [p.path_id for p in careers.list_paths("grand")] == [path.path_id]
    assert careers.get_path_by_department("grand", "front").path_id == path.path_id
    assert careers.get_path_by_department("grand", "kitchen") is None


def test_writes_need_structure_permission(careers):
    with pytest.raises(AuthorizationError):
        careers.create_path(actor_id="staff", organization_id="grand", title="X")
    with pytest.raises(NotFoundError):
        careers.create_path(actor_id="owner", organization_id="nowhere", title="X")
    with pytest.raises(ValidationError):
        careers.create_path(actor_id="owner", organization_id="grand", title="  ")


def test_course_list_keeps_order(careers):
    path = careers.create_path(actor_id="owner", organization_id="grand", title="Path", course_ids=["c1"])

    careers.add_course(actor_id="owner", path_id=path.path_id, course_id="c2")
    careers.add_course(actor_id="owner", path_id=path.path_id, course_id="c3")
    careers.remove_course(actor_id="owner", path_id=path.path_id, course_id="c1")
    assert careers.get_path(path.path_id).course_ids == ["c2", "c3"]

    with pytest.raises(AuthorizationError):
        careers.add_course(actor_id="staff", path_id=path.path_id, course_id="c4")
    with pytest.raises(ValidationError):
        careers.add_course(actor_id="owner", path_id=path.path_id, course_id="")


def test_update_and_delete(careers):
    path = careers.create_path(actor_id="owner", organization_id="grand", title="Old")
    careers.update_path(actor_id="owner", path_id=path.path_id, fields={"title": "New", "target_role": "Chef"})

    updated = careers.get_path(path.path_id)
    assert (updated.title, updated.target_role) == ("New", "Chef")

    careers.delete_path(actor_id="owner", path_id=path.path_id)
    with pytest.raises(NotFoundError):
        careers.get_path(path.path_id)


def test_user_path_prefers_assignment(careers, repos):
    repos.career_paths.add(CareerPath(path_id="dept", organization_id="grand", title="Dept", department="front"))
    repos.career_paths.add(CareerPath(path_id="chosen", organization_id="grand", title="Chosen"))

    staff = repos.users.get_by_id("staff")
    assert careers.get_user_path(staff).path_id == "dept"

    repos.users.set_assigned_path("staff", "chosen")
    assert careers.get_user_path(repos.users.get_by_id("staff")).path_id == "chosen"

    repos.users.set_assigned_path("staff", "deleted")
    assert careers.get_user_path(repos.users.get_by_id("staff")).path_id == "dept"

    assert careers.get_user_path(make_user("loner")) is None
