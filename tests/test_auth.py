import pytest

from conftest import auth_header
from quizbank.core.auth import ADMIN, create_token, require_roles


def test_foreign_roles_in_token_grant_nothing(client):
    r = client.get("/v1/admin/questions/stats", headers=auth_header("ops", ("superuser",)))
    assert r.status_code == 403
    assert client.post("/v1/quiz/start", headers=auth_header("ops", ("superuser",))).status_code == 403


def test_admin_may_take_quizzes(client, seed_bank):
    seed_bank()
    r = client.post("/v1/quiz/start", headers=auth_header("admin-1", (ADMIN,)))
    assert r.status_code == 200
    assert len(r.json()["questions"]) == 10


def test_expired_token_rejected(client):
    token = create_token("user-1", ["participant"], ttl_minutes=-1)
    r = client.post("/v1/quiz/start", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_require_roles_refuses_unknown_role():
    with pytest.raises(ValueError):
        require_roles("root")
