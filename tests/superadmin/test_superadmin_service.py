from __future__ import annotations

import pytest

from hotel_academy.core.enums import UserRole, UserStatus
from hotel_academy.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from hotel_academy.superadmin.service import decode_cursor, encode_cursor, is_phone_search

from fakes import make_user


@pytest.fixture
def admin(container, repos):
    repos.users.add(make_user("root", role=UserRole.SUPER_ADMIN, join_date=1))
    repos.users.add(make_user("u1", name="Ahmet", phone_number="+905551110000", join_date=10))
    repos.users.add(make_user("u2", name="Ayşe", phone_number="+905552220000", join_date=20, status=UserStatus.BANNED))
    repos.users.add(make_user("u3", name="Burak", join_date=30, role=UserRole.MANAGER))
    repos.users.add(make_user("u4", name="Ahu", join_date=40, role=UserRole.ADMIN))
    return container.superadmin_service


def test_cursor_round_trip_and_validation():
    assert decode_cursor(encode_cursor(30, "u3")) == ("30", "u3")
    assert decode_cursor("a|b|c") == ("a|b", "c")
    assert decode_cursor(None) is None
    with pytest.raises(ValidationError):
        decode_cursor("no-separator")


def test_phone_search_detection():
    assert is_phone_search("+90")
    assert is_phone_search("555")
    assert not is_phone_search("Ahmet")


def test_only_super_admins(admin):
    with pytest.raises(AuthorizationError):
        admin.get_all_users(actor_id="u4")
    with pytest.raises(AuthorizationError):
        admin.update_system_settings(actor_id="u1", fields={"login_screen_image": "x"})


def test_pages_are_newest_first(admin):
    first = admin.get_all_users(actor_id="root", page_size=2)
    assert [u.user_id for u in first.users] == ["u4", "u3"]
    assert first.next_cursor == "30|u3"

    second = admin.get_all_users(actor_id="root", page_size=2, cursor=first.next_cursor)
    assert [u.user_id for u in second.users] == ["u2", "u1"]

    third = admin.get_all_users(actor_id="root", page_size=2, cursor=second.next_cursor)
    assert [u.user_id for u in third.users] == ["root"]
    assert admin.get_all_users(actor_id="root", page_size=2, cursor=third.next_cursor).users == []


def test_search_cursor_is_rejected_by_the_listing(admin):
    with pytest.raises(ValidationError):
        admin.get_all_users(actor_id="root", cursor="Ahu|u4")
    with pytest.raises(ValidationError):
        admin.get_all_users(actor_id="root", cursor="abc|u1")


def test_filters(admin):
    assert [u.user_id for u in admin.get_all_users(actor_id="root", filter="BANNED").users] == ["u2"]
    assert [u.user_id for u in admin.get_all_users(actor_id="root", filter="MANAGERS").users] == ["u4", "u3"]
    with pytest.raises(ValidationError):
        admin.get_all_users(actor_id="root", filter="VIP")


def test_prefix_search_by_name_and_phone(admin):
    by_name = admin.get_all_users(actor_id="root", search_term="Ah")
    assert [u.user_id for u in by_name.users] == ["u1", "u4"]
    assert by_name.next_cursor == "Ahu|u4"

    by_phone = admin.get_all_users(actor_id="root", search_term="+90555")
    assert [u.user_id for u in by_phone.users] == ["u1", "u2"]

    empty = admin.get_all_users(actor_id="root", search_term="Zeynep")
    assert empty.users == [] and empty.next_cursor is None


def test_status_and_deletion(admin, repos):
    admin.update_user_status(actor_id="root", user_id="u1", status="SUSPENDED")
    assert repos.users.get_by_id("u1").status == UserStatus.SUSPENDED

    with pytest.raises(ValidationError):
        admin.update_user_status(actor_id="root", user_id="u1", status="GONE")
    with pytest.raises(NotFoundError):
        admin.update_user_status(actor_id="root", user_id="ghost", status="BANNED")

    admin.delete_user_complete(actor_id="root", user_id="u1")
    assert repos.users.get_by_id("u1") is None
    with pytest.raises(ValidationError):
        admin.delete_user_complete(actor_id="root", user_id="root")
    with pytest.raises(NotFoundError):
        admin.delete_user_complete(actor_id="root", user_id="u1")


def test_system_settings(admin, repos):
    assert admin.get_system_settings().login_screen_image == ""

    saved = admin.update_system_settings(actor_id="root", fields={"login_screen_image": "lobby.jpg", "theme": "dark"})
    assert saved.login_screen_image == "lobby.jpg"
    assert repos.system_settings.get("global") == {"login_screen_image": "lobby.jpg"}
    assert admin.get_system_settings().login_screen_image == "lobby.jpg"
