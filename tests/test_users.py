import pytest
from sqlalchemy import select

from task_api.errors import ValidationError
from task_api.models import Task
from task_api.schemas.user import UserCreate, UserRead
from task_api.services import users as user_service


@pytest.fixture(autouse=True)
def cheap_bcrypt(monkeypatch):
    monkeypatch.setattr(user_service, "BCRYPT_ROUNDS", 4)


def _user_data(**overrides):
    data = {
        "username": "erin",
        "email": "erin@example.com",
        "password": "s3cret-pass",
        "first_name": "Erin",
        "last_name": "Example",
    }
    data.update(overrides)
    return UserCreate(**data)


def test_create_user_hashes_password(db):
    user = user_service.create_user(db, _user_data())

    assert user.password != "s3cret-pass"
    assert user_service.verify_password("s3cret-pass", user.password)
    assert not user_service.verify_password("wrong", user.password)
    assert user.is_active is True


def test_user_read_never_exposes_password(db):
    user = user_service.create_user(db, _user_data())

    assert "password" not in UserRead.model_validate(user).model_dump()


def test_duplicate_username_or_email_is_rejected(db):
    user_service.create_user(db, _user_data())

    with pytest.raises(ValidationError):
        user_service.create_user(db, _user_data(email="other@example.com"))
    with pytest.raises(ValidationError):
        user_service.create_user(db, _user_data(username="erin2"))


def test_full_name_falls_back_to_username(make_user):
    assert user_service.full_name(make_user("frank", first_name="Frank", last_name="Ocean")) == "Frank Ocean"
    assert user_service.full_name(make_user("gina", first_name=None, last_name=None)) == "gina"


def test_deleting_user_clears_task_owner(db, make_user, make_task):
    owner = make_user("henry")
    task = make_task("keep me", user_id=owner.id)

    db.delete(owner)
    db.commit()
    db.expire_all()

    stored = db.execute(select(Task).where(Task.id == task.id)).scalar_one()
    assert stored.user_id is None
