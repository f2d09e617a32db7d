import pytest

from notifications.models import DeviceToken
from users.models import User

from .conftest import PASSWORD

BASE = "/api/auth"


@pytest.mark.django_db
def test_register_customer_returns_tokens(api_client):
    r = api_client.post(f"{BASE}/register/", {
        "name": "New Customer",
        "email": "New@Example.com",
        "phone": "+91 98765-43210",
        "password": PASSWORD,
    }, format="json")

    assert r.status_code == 201
    body = r.json()
    assert body["access"] and body["refresh"]
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["role"] == "user"
    assert body["user"]["phone"] == "9876543210"


@pytest.mark.django_db
def test_register_worker_role(api_client):
    r = api_client.post(f"{BASE}/register/", {
        "name": "New Worker",
        "email": "newworker@example.com",
        "phone": "9876543211",
        "password": PASSWORD,
        "role": "worker",
    }, format="json")

    assert r.status_code == 201
    assert User.objects.get(email="newworker@example.com").role == "worker"


def test_register_rejects_admin_role(api_client, db):
    r = api_client.post(f"{BASE}/register/", {
        "name": "Sneaky",
        "email": "sneaky@example.com",
        "phone": "9876543211",
        "password": PASSWORD,
        "role": "admin",
    }, format="json")

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_input"


def test_register_duplicate_email(api_client, customer):
    r = api_client.post(f"{BASE}/register/", {
        "name": "Again",
        "email": customer.email.upper(),
        "phone": "9876543211",
        "password": PASSWORD,
    }, format="json")

    assert r.status_code == 400
    assert "email" in r.json()["detail"]


@pytest.mark.django_db
def test_register_invalid_phone(api_client):
    r = api_client.post(f"{BASE}/register/", {
        "name": "Bad Phone",
        "email": "badphone@example.com",
        "phone": "12345",
        "password": PASSWORD,
    }, format="json")

    assert r.status_code == 400
    assert "phone" in r.json()["detail"]


def test_login_success_registers_device(api_client, customer):
    r = api_client.post(f"{BASE}/login/", {
        "email": "CUSTOMER@example.com",
        "password": PASSWORD,
        "device_token": "device-abc",
        "platform": "android",
    }, format="json")

    assert r.status_code == 200
    assert r.json()["user"]["id"] == customer.id
    token = DeviceToken.objects.get(token="device-abc")
    assert token.user == customer
    assert token.platform == "android"


def test_login_wrong_password(api_client, customer):
    r = api_client.post(f"{BASE}/login/", {"email": customer.email, "password": "nope"}, format="json")
    assert r.status_code == 401
    assert r.json()["code"] == "invalid_credentials"


def test_login_disabled_account(api_client, customer):
    customer.is_active = False
    customer.save()

    r = api_client.post(f"{BASE}/login/", {"email": customer.email, "password": PASSWORD}, format="json")
    assert r.status_code == 403


@pytest.mark.django_db
def test_me_requires_token(api_client):
    assert api_client.get(f"{BASE}/me/").status_code == 401


def test_me_with_bearer_token(api_client, customer):
    login = api_client.post(f"{BASE}/login/", {"email": customer.email, "password": PASSWORD}, format="json")
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.json()['access']}")

    r = api_client.get(f"{BASE}/me/")
    assert r.status_code == 200
    assert r.json()["data"]["email"] == customer.email


def test_token_refresh(api_client, customer):
    login = api_client.post(f"{BASE}/login/", {"email": customer.email, "password": PASSWORD}, format="json")
    r = api_client.post("/api/token/refresh/", {"refresh": login.json()["refresh"]}, format="json")
    assert r.status_code == 200
    assert "access" in r.json()


def test_update_details_cannot_change_role(customer_client):
    r = customer_client.put(f"{BASE}/updatedetails/", {"role": "admin"}, format="json")
    assert r.status_code == 400


def test_update_password(customer_client, customer):
    r = customer_client.put(f"{BASE}/updatepassword/", {
        "current_password": PASSWORD,
        "new_password": "Another@5678",
    }, format="json")

    assert r.status_code == 200
    customer.refresh_from_db()
    assert customer.check_password("Another@5678")


def test_update_password_wrong_current(customer_client):
    r = customer_client.put(f"{BASE}/updatepassword/", {
        "current_password": "wrong",
        "new_password": "Another@5678",
    }, format="json")
    assert r.status_code == 400


def test_logout_deactivates_device(customer_client, customer):
    DeviceToken.register(customer, "device-xyz")
    r = customer_client.post(f"{BASE}/logout/", {"device_token": "device-xyz"}, format="json")

    assert r.status_code == 200
    assert not DeviceToken.objects.get(token="device-xyz").is_active


def test_role_is_immutable(customer):
    from django.core.exceptions import ValidationError

    customer.role = "worker"
    with pytest.raises(ValidationError):
        customer.save()
